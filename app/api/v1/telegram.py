from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request

from core.logging import logger
from schemas.telegram import Update

router = APIRouter()


@router.post("/telegram/webhook")
async def telegram_webhook(
    update: Update,
    request: Request,
    background_tasks: BackgroundTasks,
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
):
    expected = getattr(request.app.state, "webhook_secret", None)
    if expected and x_telegram_bot_api_secret_token != expected:
        logger.warning(f"Rejected webhook update {update.update_id}: bad secret token")
        raise HTTPException(status_code=403, detail="Invalid secret token")

    controller = request.app.state.controller
    # answer Telegram right away; generation can take longer than its webhook timeout
    background_tasks.add_task(controller.dispatch, update)
    return {"ok": True}
