"""Run the bot with long polling instead of a webhook (local development)."""

import asyncio

from app.dependencies import build_controller, close_controller
from core.config import settings
from core.exceptions import TelegramError
from core.logging import logger, setup_logging
from schemas.telegram import Update

POLL_TIMEOUT = 25
ERROR_PAUSE_SECONDS = 5


async def run_polling() -> None:
    controller = build_controller(settings)
    telegram = controller.chat
    offset = None
    pending: set = set()

    logger.info("🍊 TangerineBot is starting (polling)...")
    await telegram.delete_webhook()
    try:
        while True:
            try:
                updates = await telegram.get_updates(offset=offset, timeout=POLL_TIMEOUT)
            except TelegramError as e:
                logger.error(f"Polling failed: {e}")
                await asyncio.sleep(ERROR_PAUSE_SECONDS)
                continue

            for raw in updates:
                offset = raw["update_id"] + 1
                # chats are handled concurrently; dispatch keeps each chat in order
                task = asyncio.create_task(controller.dispatch(Update.model_validate(raw)))
                pending.add(task)
                task.add_done_callback(pending.discard)
    finally:
        await drain(pending)
        await close_controller(controller)


async def drain(tasks: set) -> None:
    """Cancel in-flight update handlers and wait for them to finish."""
    for task in tasks:
        task.cancel()
    if tasks:
        logger.info(f"Cancelling {len(tasks)} in-flight updates")
        await asyncio.gather(*tasks, return_exceptions=True)


def main() -> None:
    setup_logging(settings.LOG_LEVEL)
    try:
        asyncio.run(run_polling())
    except KeyboardInterrupt:
        logger.info("TangerineBot stopped")


if __name__ == "__main__":
    main()
