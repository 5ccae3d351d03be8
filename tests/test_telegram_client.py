import json

import httpx
import pytest

from core.exceptions import TelegramError
from services.telegram_client import TelegramClient


def make_client(handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TelegramClient("123:ABC", http_client=http)


@pytest.mark.asyncio
async def test_send_message_returns_message_id_and_drops_empty_fields():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"ok": True, "result": {"message_id": 555}})

    client = make_client(handler)
    message_id = await client.send_message(42, "*hi*", reply_markup={"remove_keyboard": True})
    await client.aclose()

    assert message_id == 555
    request = requests[0]
    assert request.url.path.endswith("/sendMessage")
    assert json.loads(request.content) == {
        "chat_id": 42,
        "text": "*hi*",
        "parse_mode": "Markdown",
        "reply_markup": {"remove_keyboard": True},
    }


@pytest.mark.asyncio
async def test_not_ok_response_raises():
    def handler(request):
        return httpx.Response(
            400, json={"ok": False, "description": "Bad Request: message is not modified"}
        )

    client = make_client(handler)
    with pytest.raises(TelegramError) as excinfo:
        await client.edit_message_text(42, 7, "same text")
    await client.aclose()

    assert excinfo.value.method == "editMessageText"
    assert excinfo.value.status_code == 400
    assert "not modified" in excinfo.value.description


@pytest.mark.asyncio
async def test_transport_error_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with pytest.raises(TelegramError):
        await client.delete_message(42, 7)
    await client.aclose()


@pytest.mark.asyncio
async def test_get_updates_passes_offset():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True, "result": [{"update_id": 9}]})

    client = make_client(handler)
    updates = await client.get_updates(offset=9, timeout=0)
    await client.aclose()

    assert updates == [{"update_id": 9}]
    assert bodies[0] == {
        "offset": 9,
        "timeout": 0,
        "allowed_updates": ["message", "callback_query"],
    }
