"""
Shared fakes for the gateway and backend collaborators.
"""

import pytest
from fastapi.testclient import TestClient

from bridge.errors import BackendUnavailable, SendFailure
from bridge.whatsapp.schemas import ChatMessageSummary, IncomingMessage
from bridge.whatsapp.session import WhatsAppSession


class FakeGateway:
    """Records every call made to the WhatsApp gateway."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.replies: list[tuple[str, str, str]] = []
        self.locations: list[tuple[str, float, float, str]] = []
        self.calls: list[str] = []
        # Chat history, newest first. Default: user already talked to us.
        self.history = [ChatMessageSummary(id="previous", fromMe=False)]
        self.fail_send = False
        self.fail_initialize = 0

    async def initialize(self):
        self.calls.append("initialize")
        if self.fail_initialize:
            self.fail_initialize -= 1
            raise SendFailure("gateway down")

    async def destroy(self):
        self.calls.append("destroy")

    async def send_message(self, chat_id, text, reply_to=None):
        if self.fail_send:
            raise SendFailure("Evaluation failed: chat not found")
        self.sent.append((chat_id, text))
        return {"id": "sent"}

    async def reply(self, chat_id, message_id, text):
        if self.fail_send:
            raise SendFailure("Evaluation failed: chat not found")
        self.replies.append((chat_id, message_id, text))
        return {"id": "reply"}

    async def send_location(self, chat_id, latitude, longitude, title="Ubicación del cliente"):
        if self.fail_send:
            raise SendFailure("Evaluation failed: chat not found")
        self.locations.append((chat_id, latitude, longitude, title))
        return {"id": "location"}

    async def get_recent_messages(self, chat_id, limit=2):
        return self.history[:limit]

    async def close(self):
        pass

    @property
    def outgoing(self) -> list[str]:
        """All texts delivered to chats, sends and replies together."""
        return [text for _, text in self.sent] + [text for _, _, text in self.replies]


class FakeBackend:
    """Order backend returning canned responses."""

    def __init__(self):
        self.chat_calls: list[tuple[str, str]] = []
        self.location_calls: list[tuple[str, float, float]] = []
        self.order_calls: list[tuple[str, str]] = []
        self.chat_response: dict = {}
        self.location_response: dict = {}
        self.order_response: dict = {"status": "success"}
        self.error: Exception | None = None

    async def notify_chat(self, message, phone):
        self.chat_calls.append((message, phone))
        if self.error:
            raise self.error
        return self.chat_response

    async def notify_location(self, phone, latitude, longitude):
        self.location_calls.append((phone, latitude, longitude))
        if self.error:
            raise self.error
        return self.location_response

    async def resolve_order_action(self, order_id, action):
        self.order_calls.append((order_id, action))
        if self.error:
            raise self.error
        return self.order_response

    async def close(self):
        pass


def make_message(body: str = "", **overrides) -> IncomingMessage:
    data = {
        "id": "msg-1",
        "from": "5215551234567@c.us",
        "body": body,
        "type": "chat",
    }
    data.update(overrides)
    return IncomingMessage.model_validate(data)


@pytest.fixture
def anyio_backend():
    """The bridge runs on asyncio; don't parametrize over other installed backends."""
    return "asyncio"


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def backend_down(backend):
    backend.error = BackendUnavailable("Connection refused")
    return backend


@pytest.fixture
def client(gateway, backend):
    """TestClient with fakes installed on app.state (startup hook not run)."""
    from bridge.main import app

    app.state.session = WhatsAppSession(gateway, reconnect_delay=0, reconnect_attempts=1)
    app.state.backend = backend
    return TestClient(app)


@pytest.fixture
def message():
    """Factory for incoming messages."""
    return make_message
