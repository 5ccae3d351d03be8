from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.v1.telegram import router as telegram_router
from app.dependencies import build_controller, close_controller
from core.config import settings
from core.logging import logger, setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    controller = build_controller(settings)
    app.state.controller = controller
    app.state.webhook_secret = settings.WEBHOOK_SECRET

    if settings.WEBHOOK_URL:
        await controller.chat.set_webhook(settings.WEBHOOK_URL, settings.WEBHOOK_SECRET)
    else:
        logger.warning("WEBHOOK_URL is not set; updates will only arrive if registered elsewhere")

    logger.info("🍊 TangerineBot is starting...")
    yield
    await close_controller(controller)


app = FastAPI(title="TangerineBot Trip Planner", lifespan=lifespan)

# Include API routes
app.include_router(telegram_router, prefix="/api/v1")


@app.get("/")
async def root():
    return {"message": "TangerineBot Trip Planner"}
