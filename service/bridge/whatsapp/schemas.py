"""
Event payloads pushed by the WhatsApp gateway to POST /whatsapp/webhook.

The gateway mirrors the WhatsApp Web client events:
qr, authenticated, ready, disconnected, message.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from bridge.utils.normalize import is_group_chat

GatewayEventName = Literal["qr", "authenticated", "ready", "disconnected", "message"]


class MessageLocation(BaseModel):
    latitude: float
    longitude: float
    description: Optional[str] = None


class IncomingMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    from_: str = Field(alias="from")
    body: str = ""
    type: str = "chat"
    from_me: bool = Field(default=False, alias="fromMe")
    is_group_msg: bool = Field(default=False, alias="isGroupMsg")
    location: Optional[MessageLocation] = None

    @property
    def chat_id(self) -> str:
        return self.from_

    @property
    def is_group(self) -> bool:
        return self.is_group_msg or is_group_chat(self.from_)

    @property
    def has_location(self) -> bool:
        return self.location is not None or self.type == "location"


class GatewayEvent(BaseModel):
    event: str
    session: Optional[str] = None
    payload: dict[str, Any] = Field(default_factory=dict)


class ChatMessageSummary(BaseModel):
    """Entry returned by the gateway chat history endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    from_me: bool = Field(default=False, alias="fromMe")
