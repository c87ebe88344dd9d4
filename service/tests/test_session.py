"""
Tests for the session lifecycle, live viewers and reconnect supervisor.
"""

import logging

import pytest

from bridge.whatsapp.bot import handle_gateway_event
from bridge.whatsapp.logging_config import bot_logger
from bridge.whatsapp.session import SessionState, ViewerHub, WhatsAppSession, render_qr_ascii

pytestmark = pytest.mark.anyio

QR_BLOCKS = ("█", "▀", "▄")


class FakeWebSocket:
    """Records what the hub sends to a viewer."""

    def __init__(self, broken: bool = False):
        self.accepted = False
        self.closed_with = None
        self.messages: list[dict] = []
        self.broken = broken

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.broken:
            raise RuntimeError("socket closed")
        self.messages.append(data)

    async def close(self, code=1000):
        self.closed_with = code


class ListHandler(logging.Handler):
    """Collects formatted log messages."""

    def __init__(self):
        super().__init__()
        self.messages: list[str] = []

    def emit(self, record):
        self.messages.append(record.getMessage())


@pytest.fixture
def session(gateway):
    return WhatsAppSession(gateway, reconnect_delay=0, reconnect_attempts=1)


@pytest.fixture
def bot_log():
    handler = ListHandler()
    bot_logger.addHandler(handler)
    yield handler
    bot_logger.removeHandler(handler)


class TestViewerHub:
    """Tests for ViewerHub."""

    async def test_new_viewer_gets_latest_qr(self):
        """Viewer connecting during login receives the pending QR."""
        hub = ViewerHub()
        ws = FakeWebSocket()

        await hub.connect(ws, SessionState(qr="2@abc"))

        assert ws.accepted
        assert ws.messages == [{"event": "qr", "data": "2@abc"}]

    async def test_new_viewer_gets_ready(self):
        """Viewer connecting after login receives ready."""
        hub = ViewerHub()
        ws = FakeWebSocket()

        await hub.connect(ws, SessionState(authenticated=True, ready=True))

        assert ws.messages == [{"event": "ready"}]

    async def test_broadcast_drops_dead_viewers(self):
        """Viewers whose socket fails are removed."""
        hub = ViewerHub()
        alive, dead = FakeWebSocket(), FakeWebSocket()
        await hub.connect(alive, SessionState())
        await hub.connect(dead, SessionState())
        dead.broken = True

        await hub.broadcast("authenticated")

        assert alive.messages == [{"event": "authenticated"}]
        assert hub.connections == {alive}


class TestQrRendering:
    """Tests for terminal QR rendering."""

    def test_render_produces_block(self):
        """QR challenge renders as a multi-line block of half-block characters."""
        rendered = render_qr_ascii("2@abcDEF123,xyz==,456==")

        lines = rendered.splitlines()
        assert len(lines) > 5
        assert any(block in rendered for block in QR_BLOCKS)

    async def test_on_qr_logs_rendered_block(self, session, bot_log):
        """on_qr writes the scannable block to the bot log."""
        await session.on_qr("2@abc")

        rendered = render_qr_ascii("2@abc")
        assert any(rendered in message for message in bot_log.messages)


class TestLifecycle:
    """Tests for session lifecycle events."""

    async def test_qr_then_ready(self, session):
        """qr, authenticated and ready update state and reach viewers in order."""
        ws = FakeWebSocket()
        await session.viewers.connect(ws, session.state)

        await session.on_qr("2@abc")
        assert session.state.qr == "2@abc"
        assert session.is_ready is False

        await session.on_authenticated()
        await session.on_ready()

        assert session.is_ready is True
        assert session.state.qr is None
        assert [m["event"] for m in ws.messages] == ["qr", "authenticated", "ready"]

    async def test_start_survives_gateway_failure(self, session, gateway):
        """Gateway down at startup is logged, not raised."""
        gateway.fail_initialize = 1
        await session.start()
        assert gateway.calls == ["initialize"]

    async def test_stop_destroys_session(self, session, gateway):
        """Shutdown destroys the session and closes viewers."""
        ws = FakeWebSocket()
        await session.viewers.connect(ws, session.state)
        await session.on_ready()

        await session.stop()

        assert gateway.calls == ["destroy"]
        assert session.is_ready is False
        assert ws.closed_with == 1012


class TestReconnect:
    """Tests for the reconnect supervisor."""

    async def test_disconnect_restarts_session(self, session, gateway):
        """Disconnect destroys then reinitializes the session."""
        await session.on_ready()

        await session.on_disconnected("NAVIGATION")
        await session.wait_reconnect()

        assert session.is_ready is False
        assert gateway.calls == ["destroy", "initialize"]

    async def test_single_supervisor_in_flight(self, gateway):
        """A second disconnect while reconnecting does not start another supervisor."""
        session = WhatsAppSession(gateway, reconnect_delay=0.05, reconnect_attempts=1)

        await session.on_disconnected("LOGOUT")
        await session.on_disconnected("LOGOUT")
        await session.wait_reconnect()

        assert gateway.calls == ["destroy", "initialize"]

    async def test_retries_up_to_configured_attempts(self, gateway):
        """Failed initialize is retried reconnect_attempts times."""
        gateway.fail_initialize = 5
        session = WhatsAppSession(gateway, reconnect_delay=0, reconnect_attempts=3)

        await session.on_disconnected("CONFLICT")
        await session.wait_reconnect()

        assert gateway.calls == ["destroy", "initialize", "initialize", "initialize"]

    async def test_stop_cancels_pending_reconnect(self, gateway):
        """Shutdown cancels a reconnect that has not fired yet."""
        session = WhatsAppSession(gateway, reconnect_delay=60, reconnect_attempts=1)

        await session.on_disconnected("NAVIGATION")
        await session.stop()

        assert "initialize" not in gateway.calls


class TestGatewayEvents:
    """Tests for handle_gateway_event dispatch."""

    async def test_lifecycle_events_dispatched(self, session, backend):
        """qr and ready events reach the session."""
        await handle_gateway_event({"event": "qr", "payload": {"qr": "2@xyz"}}, session, backend)
        assert session.state.qr == "2@xyz"

        await handle_gateway_event({"event": "ready"}, session, backend)
        assert session.is_ready is True

    async def test_message_event_routed(self, session, gateway, backend):
        """message events reach the router."""
        backend.chat_response = {"answer": "Hola 👋"}
        event = {
            "event": "message",
            "session": "default",
            "payload": {"id": "m1", "from": "5551234567@c.us", "body": "hola"},
        }

        await handle_gateway_event(event, session, backend)

        assert backend.chat_calls == [("hola", "5551234567")]
        assert gateway.sent == [("5551234567@c.us", "Hola 👋")]

    async def test_invalid_events_ignored(self, session, backend):
        """Malformed and unknown events are logged and dropped."""
        await handle_gateway_event({"payload": {}}, session, backend)
        await handle_gateway_event({"event": "message", "payload": {"body": "no id"}}, session, backend)
        await handle_gateway_event({"event": "message_ack", "payload": {}}, session, backend)

        assert backend.chat_calls == []
