"""
WhatsApp gateway client.

The gateway sidecar owns the WhatsApp Web session (browser, QR login,
transport). This module is the thin HTTP wrapper used to drive it:
session start/stop, sending text and locations, reading chat history.
"""

from typing import Any, Dict, List, Optional

import httpx

from bridge.config import get_settings
from bridge.errors import SendFailure
from .logging_config import bot_logger as logger
from .schemas import ChatMessageSummary

DEFAULT_LOCATION_TITLE = "Ubicación del cliente"


class WhatsAppGateway:
    """
    Client for the WhatsApp gateway REST API.

    All send operations raise SendFailure on transport errors or non-2xx
    responses.
    """

    def __init__(
        self,
        base_url: str = None,
        session: str = None,
        api_key: str = None,
        timeout: float = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.whatsapp_gateway_url).rstrip("/")
        self.session = session or settings.whatsapp_session
        api_key = settings.whatsapp_gateway_api_key if api_key is None else api_key
        headers = {"X-Api-Key": api_key} if api_key else {}
        self.client = client or httpx.AsyncClient(
            timeout=timeout or settings.gateway_timeout_seconds,
            headers=headers,
        )

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self.client.post(f"{self.base_url}{path}", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SendFailure(str(e) or e.__class__.__name__) from e

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    async def initialize(self) -> None:
        """Start (or resume) the WhatsApp Web session on the gateway."""
        await self._post("/api/sessions/start", {"name": self.session})
        logger.info(f"Gateway session '{self.session}' start requested")

    async def destroy(self) -> None:
        """Stop the WhatsApp Web session on the gateway."""
        await self._post("/api/sessions/stop", {"name": self.session})
        logger.info(f"Gateway session '{self.session}' stopped")

    async def send_message(self, chat_id: str, text: str, reply_to: Optional[str] = None) -> Dict[str, Any]:
        """
        Send a text message to a chat.

        Args:
            chat_id: WhatsApp chat ID ("<digits>@c.us")
            text: Message text
            reply_to: Optional message ID to quote (msg.reply semantics)
        """
        payload = {
            "session": self.session,
            "chatId": chat_id,
            "text": text,
        }
        if reply_to:
            payload["reply_to"] = reply_to

        return await self._post("/api/sendText", payload)

    async def reply(self, chat_id: str, message_id: str, text: str) -> Dict[str, Any]:
        """Reply to a specific message, quoting it."""
        return await self.send_message(chat_id, text, reply_to=message_id)

    async def send_location(
        self,
        chat_id: str,
        latitude: float,
        longitude: float,
        title: str = DEFAULT_LOCATION_TITLE,
    ) -> Dict[str, Any]:
        """Send a location pin to a chat."""
        return await self._post("/api/sendLocation", {
            "session": self.session,
            "chatId": chat_id,
            "latitude": latitude,
            "longitude": longitude,
            "title": title,
        })

    async def get_recent_messages(self, chat_id: str, limit: int = 2) -> List[ChatMessageSummary]:
        """
        Fetch the most recent messages of a chat, newest first.

        Raises httpx.HTTPError on gateway failure.
        """
        response = await self.client.get(
            f"{self.base_url}/api/{self.session}/chats/{chat_id}/messages",
            params={"limit": limit, "downloadMedia": "false"},
        )
        response.raise_for_status()
        return [ChatMessageSummary.model_validate(item) for item in response.json()]

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
