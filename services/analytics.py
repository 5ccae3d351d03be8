from typing import Any, Dict, Optional

import httpx

from core.logging import logger

GA_COLLECT_URL = "https://www.google-analytics.com/mp/collect"
ENGAGEMENT_TIME_MSEC = 100
MAX_ERROR_MESSAGE_LENGTH = 500


class Analytics:
    """Google Analytics Measurement Protocol events.

    Tracking never interrupts the conversation: when GA is not configured the
    events are only logged, and request failures are logged and dropped.
    """

    def __init__(
        self,
        measurement_id: str = "",
        api_secret: str = "",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.measurement_id = measurement_id
        self.api_secret = api_secret
        self.http = http_client

    @property
    def enabled(self) -> bool:
        return bool(self.measurement_id and self.api_secret)

    async def track_event(
        self, name: str, client_id, params: Optional[Dict[str, Any]] = None
    ) -> None:
        if not self.enabled:
            logger.debug(f"Analytics disabled, skipping event {name} for client {client_id}")
            return

        payload = {
            "client_id": str(client_id),
            "events": [
                {
                    "name": name,
                    "params": {**(params or {}), "engagement_time_msec": ENGAGEMENT_TIME_MSEC},
                }
            ],
        }
        query = {"measurement_id": self.measurement_id, "api_secret": self.api_secret}

        try:
            if self.http is None:
                self.http = httpx.AsyncClient(timeout=10.0)
            response = await self.http.post(GA_COLLECT_URL, params=query, json=payload)
            response.raise_for_status()
            logger.debug(f"Tracked event: {name} for client: {client_id}")
        except httpx.HTTPError as e:
            logger.error(f"Error tracking event {name}: {e}")

    async def trip_started(self, client_id) -> None:
        await self.track_event("trip_started", client_id)

    async def question_answered(self, client_id, question_number: int, answer: str) -> None:
        await self.track_event(
            "question_answered",
            client_id,
            {"question_number": question_number, "answer": answer},
        )

    async def trip_completed(self, client_id, destination: str, duration: str) -> None:
        await self.track_event(
            "trip_completed", client_id, {"destination": destination, "duration": duration}
        )

    async def trip_cancelled(self, client_id) -> None:
        await self.track_event("trip_cancelled", client_id)

    async def error(
        self,
        client_id,
        error_type: str,
        error_message: str,
        error_location: str,
        fatal: bool = False,
    ) -> None:
        await self.track_event(
            "error",
            client_id,
            {
                "error_type": error_type,
                "error_message": (error_message or "")[:MAX_ERROR_MESSAGE_LENGTH],
                "error_location": error_location,
                "fatal": fatal,
            },
        )

    async def aclose(self) -> None:
        if self.http is not None:
            await self.http.aclose()
