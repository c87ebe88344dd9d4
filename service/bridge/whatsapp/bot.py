"""
Main WhatsApp bot event handler.

Events arrive from the gateway webhook and are dispatched to the session
lifecycle (qr, authenticated, ready, disconnected) or to the message
handlers (message).
"""

from pydantic import ValidationError as PydanticValidationError

from .backend_client import BackendClient
from .handlers import handle_incoming_message
from .logging_config import bot_logger as logger
from .schemas import GatewayEvent, IncomingMessage
from .session import WhatsAppSession


async def handle_gateway_event(update_data: dict, session: WhatsAppSession, backend: BackendClient) -> None:
    """
    Process one webhook event from the gateway.

    This is called by the FastAPI webhook endpoint in the background.
    Never raises.
    """
    try:
        event = GatewayEvent.model_validate(update_data)
    except PydanticValidationError as e:
        logger.warning(f"Received invalid gateway event: {e}")
        return

    try:
        if event.event == "message":
            message = IncomingMessage.model_validate(event.payload)
            await handle_incoming_message(message, session.gateway, backend)
        elif event.event == "qr":
            await session.on_qr(event.payload.get("qr", ""))
        elif event.event == "authenticated":
            await session.on_authenticated()
        elif event.event == "ready":
            await session.on_ready()
        elif event.event == "disconnected":
            await session.on_disconnected(event.payload.get("reason"))
        else:
            logger.debug(f"Ignoring gateway event: {event.event}")

    except Exception as e:
        logger.error(f"Failed to process gateway event {event.event}: {e}", exc_info=True)
