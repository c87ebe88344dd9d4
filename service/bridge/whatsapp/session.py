"""
WhatsApp session lifecycle and live QR viewers.

The gateway reports the WhatsApp Web authentication lifecycle
(qr -> authenticated -> ready, and disconnected). This module keeps the
current state, pushes every change to the browsers watching the status
page, and restarts the session after a disconnect.
"""

import asyncio
import io
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set

import qrcode
from fastapi import WebSocket

from bridge.config import get_settings
from bridge.errors import SendFailure
from .gateway import WhatsAppGateway
from .logging_config import bot_logger as logger


def render_qr_ascii(data: str) -> str:
    """Render a QR challenge as a block of text scannable from a terminal."""
    code = qrcode.QRCode(border=1)
    code.add_data(data)
    code.make(fit=True)

    out = io.StringIO()
    code.print_ascii(out=out, invert=True)
    return out.getvalue()


@dataclass
class SessionState:
    qr: Optional[str] = None
    authenticated: bool = False
    ready: bool = False


class ViewerHub:
    """Connected status-page WebSockets."""

    def __init__(self):
        self.connections: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket, state: SessionState) -> None:
        """Accept a viewer and replay the current session state to it."""
        await websocket.accept()
        self.connections.add(websocket)

        if state.ready:
            await websocket.send_json({"event": "ready"})
        elif state.authenticated:
            await websocket.send_json({"event": "authenticated"})
        elif state.qr:
            await websocket.send_json({"event": "qr", "data": state.qr})

    def disconnect(self, websocket: WebSocket) -> None:
        self.connections.discard(websocket)

    async def broadcast(self, event: str, data: Any = None) -> None:
        """Push an event to every viewer, dropping the ones that are gone."""
        message: Dict[str, Any] = {"event": event}
        if data is not None:
            message["data"] = data

        for websocket in list(self.connections):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.debug(f"Dropping viewer after failed send: {e}")
                self.connections.discard(websocket)

    async def close_all(self) -> None:
        for websocket in list(self.connections):
            try:
                await websocket.close(code=1012)  # 1012 = Service Restart
            except Exception as e:
                logger.debug(f"Failed to close viewer websocket: {e}")
        self.connections.clear()


class WhatsAppSession:
    """
    Owns the gateway session handle and its authentication status.

    Created once at startup and shared through app.state.
    """

    def __init__(
        self,
        gateway: WhatsAppGateway,
        viewers: Optional[ViewerHub] = None,
        reconnect_delay: float = None,
        reconnect_attempts: int = None,
    ):
        settings = get_settings()
        self.gateway = gateway
        self.viewers = viewers or ViewerHub()
        self.state = SessionState()
        self.reconnect_delay = (
            settings.reconnect_delay_seconds if reconnect_delay is None else reconnect_delay
        )
        self.reconnect_attempts = (
            settings.reconnect_attempts if reconnect_attempts is None else reconnect_attempts
        )
        self._reconnect_task: Optional[asyncio.Task] = None

    @property
    def is_ready(self) -> bool:
        return self.state.ready

    async def start(self) -> None:
        """Ask the gateway to start the session. Failure is logged, not fatal."""
        try:
            await self.gateway.initialize()
        except SendFailure as e:
            logger.error(f"Failed to initialize WhatsApp session: {e}")

    async def stop(self) -> None:
        """Cancel any pending reconnect and tear the session down."""
        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()
            await asyncio.gather(self._reconnect_task, return_exceptions=True)
        self._reconnect_task = None

        try:
            await self.gateway.destroy()
        except SendFailure as e:
            logger.warning(f"Failed to destroy WhatsApp session: {e}")

        self.state = SessionState()
        await self.viewers.close_all()

    async def on_qr(self, qr: str) -> None:
        logger.info(f"QR RECEIVED {qr}")
        logger.info(f"Scan this QR code with WhatsApp to log in:\n{render_qr_ascii(qr)}")
        self.state.qr = qr
        self.state.authenticated = False
        self.state.ready = False
        await self.viewers.broadcast("qr", qr)

    async def on_authenticated(self) -> None:
        logger.info("WhatsApp client authenticated")
        self.state.authenticated = True
        self.state.qr = None
        await self.viewers.broadcast("authenticated")

    async def on_ready(self) -> None:
        logger.info("🚚 Relámpago Express - WhatsApp bot is ready!")
        self.state.authenticated = True
        self.state.ready = True
        self.state.qr = None
        await self.viewers.broadcast("ready")

    async def on_disconnected(self, reason: Optional[str] = None) -> None:
        """Mark the session down and schedule a supervised restart."""
        logger.warning(f"WhatsApp client disconnected: {reason}")
        self.state = SessionState()
        await self.viewers.broadcast("disconnected", reason)

        if self._reconnect_task and not self._reconnect_task.done():
            logger.info("Reconnect already scheduled")
            return

        self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        try:
            await self.gateway.destroy()
        except SendFailure as e:
            logger.warning(f"Failed to destroy session before reconnect: {e}")

        for attempt in range(1, self.reconnect_attempts + 1):
            await asyncio.sleep(self.reconnect_delay)
            logger.info(f"Trying to reconnect (attempt {attempt}/{self.reconnect_attempts})...")
            try:
                await self.gateway.initialize()
                return
            except SendFailure as e:
                logger.error(f"Reconnect attempt {attempt} failed: {e}")

    async def wait_reconnect(self) -> None:
        """Wait for the pending reconnect, if any."""
        if self._reconnect_task:
            await self._reconnect_task
