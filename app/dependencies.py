from datetime import timedelta

from core.config import Settings
from services.analytics import Analytics
from services.conversation import ConversationController
from services.session_store import SessionManager
from services.telegram_client import TelegramClient
from services.trip_planner import ItineraryGenerator


def build_controller(settings: Settings) -> ConversationController:
    """Wire the controller and its collaborators from settings."""
    telegram = TelegramClient(settings.TELEGRAM_TOKEN, timeout=settings.TELEGRAM_TIMEOUT)
    generator = ItineraryGenerator(
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_MODEL,
        temperature=settings.OPENAI_TEMPERATURE,
        timeout=settings.OPENAI_TIMEOUT,
    )
    analytics = Analytics(settings.GA_MEASUREMENT_ID, settings.GA_API_SECRET)
    sessions = SessionManager(ttl=timedelta(minutes=settings.SESSION_TTL_MINUTES))
    return ConversationController(
        chat=telegram,
        generator=generator,
        sessions=sessions,
        analytics=analytics,
        affiliate_id=settings.AGODA_CID,
    )


async def close_controller(controller: ConversationController) -> None:
    await controller.chat.aclose()
    await controller.analytics.aclose()
