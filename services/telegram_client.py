from typing import Any, Dict, List, Optional

import httpx

from core.exceptions import TelegramError
from core.logging import logger

TELEGRAM_API_URL = "https://api.telegram.org"


class TelegramClient:
    """Minimal async client for the Telegram Bot API methods the bot uses."""

    def __init__(
        self,
        token: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = TELEGRAM_API_URL,
    ):
        self.base_url = f"{base_url}/bot{token}"
        self.http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=5.0))

    async def _call(self, method: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        payload = {k: v for k, v in (payload or {}).items() if v is not None}
        try:
            response = await self.http.post(f"{self.base_url}/{method}", json=payload)
        except httpx.HTTPError as e:
            raise TelegramError(method, str(e)) from e

        try:
            data = response.json()
        except ValueError:
            raise TelegramError(method, response.text or "invalid response", response.status_code)

        if response.status_code != 200 or not data.get("ok"):
            description = data.get("description", f"HTTP {response.status_code}")
            raise TelegramError(method, description, response.status_code)
        return data.get("result")

    async def send_message(
        self,
        chat_id: int,
        text: str,
        reply_markup: Optional[dict] = None,
        parse_mode: Optional[str] = "Markdown",
        disable_web_page_preview: Optional[bool] = None,
    ) -> int:
        result = await self._call(
            "sendMessage",
            {
                "chat_id": chat_id,
                "text": text,
                "parse_mode": parse_mode,
                "reply_markup": reply_markup,
                "disable_web_page_preview": disable_web_page_preview,
            },
        )
        return result["message_id"]

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        reply_markup: Optional[dict] = None,
        parse_mode: Optional[str] = "Markdown",
    ) -> None:
        await self._call(
            "editMessageText",
            {
                "chat_id": chat_id,
                "message_id": message_id,
                "text": text,
                "parse_mode": parse_mode,
                "reply_markup": reply_markup,
            },
        )

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        await self._call("deleteMessage", {"chat_id": chat_id, "message_id": message_id})

    async def answer_callback_query(self, callback_query_id: str, text: Optional[str] = None) -> None:
        await self._call(
            "answerCallbackQuery", {"callback_query_id": callback_query_id, "text": text}
        )

    async def get_updates(self, offset: Optional[int] = None, timeout: int = 25) -> List[dict]:
        return await self._call(
            "getUpdates",
            {
                "offset": offset,
                "timeout": timeout,
                "allowed_updates": ["message", "callback_query"],
            },
        )

    async def set_webhook(self, url: str, secret_token: Optional[str] = None) -> None:
        logger.info(f"Registering Telegram webhook: {url}")
        await self._call(
            "setWebhook",
            {
                "url": url,
                "secret_token": secret_token,
                "allowed_updates": ["message", "callback_query"],
            },
        )

    async def delete_webhook(self) -> None:
        await self._call("deleteWebhook")

    async def aclose(self) -> None:
        await self.http.aclose()
