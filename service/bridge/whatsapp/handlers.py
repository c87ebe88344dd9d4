"""
WhatsApp message handlers.

ARCHITECTURE: Thin routing layer - NO order logic here!
- Receives parsed messages from the gateway webhook
- Classifies them (location, order command, help, plain text)
- Routes to the order backend (/chat, /location, /restaurant-response)
- Sends the backend answer back to the chat

Priority order, first match wins:
1. Group messages and echoes of our own messages are ignored
2. First contact gets the welcome banner (then handling continues)
3. Location shares -> /location
4. #confirmar <id> -> /restaurant-response (confirm)
5. #rechazar <id> -> /restaurant-response (reject)
6. Courier shorthands are logged, then continue to passthrough
7. "ayuda" / "help" -> static help
8. Everything else -> /chat
"""

import httpx

from bridge.errors import BackendUnavailable
from bridge.utils.normalize import normalize_phone
from .backend_client import BackendClient
from .dispatcher import MessageKind, classify_message
from .gateway import WhatsAppGateway
from .logging_config import bot_logger as logger
from .schemas import IncomingMessage

BRAND = "*RELÁMPAGO EXPRESS*"

WELCOME_TEXT = """
*🚚 ¡BIENVENIDO A RELÁMPAGO EXPRESS! 🚚*

Tu servicio de entrega rápido y confiable.
"""

HELP_TEXT = """
*📌 AYUDA DE RELÁMPAGO EXPRESS*

- Para iniciar un nuevo pedido, escribe: *iniciar*
- Para reiniciar el proceso, escribe: *reiniciar*
- Para consultar un pedido existente, escribe: *consultar [ID_PEDIDO]*
- Para cancelar el proceso actual, escribe: *cancelar*
- Puedes compartir tu ubicación directamente para una entrega más precisa 📍

Si eres un repartidor:
- Para informar el precio de un pedido: *#precio [ID_PEDIDO] [MONTO]* o *#p [ID_PEDIDO] [MONTO]*
- Para marcar un pedido como entregado: *#completar [ID_PEDIDO]* o *#co [ID_PEDIDO]*
- Para ver tus pedidos activos: *#mispedidos*
"""

LOCATION_RECEIVED_TEXT = "📍 Tu ubicación ha sido recibida y enviada a nuestro sistema."
LOCATION_ERROR_TEXT = f"❌ {BRAND}: Ocurrió un error al procesar tu ubicación."
GENERIC_ERROR_TEXT = (
    f"❌ {BRAND}: Lo siento, ocurrió un error al procesar tu mensaje. "
    "Por favor, intenta nuevamente o escribe *ayuda* para ver opciones disponibles."
)

# action -> (command, past participle used in replies, infinitive)
ORDER_ACTION_TEXTS = {
    "confirm": ("#confirmar", "confirmado exitosamente", "confirmar"),
    "reject": ("#rechazar", "rechazado", "rechazar"),
}


async def handle_incoming_message(
    message: IncomingMessage,
    gateway: WhatsAppGateway,
    backend: BackendClient,
) -> None:
    """
    Handle one incoming WhatsApp message.

    Never raises: any failure is logged and answered with a generic error
    reply.
    """
    if message.is_group or message.from_me:
        return

    try:
        await _route_message(message, gateway, backend)
    except Exception as e:
        logger.error(f"Error processing message {message.id} from {message.chat_id}: {e}", exc_info=True)
        try:
            await gateway.reply(message.chat_id, message.id, GENERIC_ERROR_TEXT)
        except Exception as reply_error:
            logger.error(f"Failed to send error reply to {message.chat_id}: {reply_error}")


async def _route_message(
    message: IncomingMessage,
    gateway: WhatsAppGateway,
    backend: BackendClient,
) -> None:
    chat_id = message.chat_id
    phone = normalize_phone(chat_id)

    logger.info(f"Received {message.type} message from {chat_id}, text_len={len(message.body)}")

    if await is_first_contact(message, gateway):
        await send_welcome_message(gateway, chat_id)

    if message.has_location:
        await handle_location_message(message, gateway, backend, phone)
        return

    classified = classify_message(message.body)

    if classified.kind in (MessageKind.CONFIRM, MessageKind.REJECT):
        action = "confirm" if classified.kind == MessageKind.CONFIRM else "reject"
        if classified.order_id is None:
            command = ORDER_ACTION_TEXTS[action][0]
            await gateway.reply(
                chat_id, message.id,
                f"❌ {BRAND}: Formato incorrecto. Uso: {command} [ID_PEDIDO]"
            )
            return
        await handle_order_action(message, gateway, backend, classified.order_id, action)
        return

    if classified.courier_command is not None:
        logger.info(f"Courier command '{classified.courier_command.value}' forwarded to backend: {message.body}")

    if classified.kind == MessageKind.HELP:
        await gateway.reply(chat_id, message.id, HELP_TEXT)
        return

    await handle_text_message(message, gateway, backend, phone)


async def is_first_contact(message: IncomingMessage, gateway: WhatsAppGateway) -> bool:
    """
    Check whether the chat has no prior message or the latest prior message
    was sent by the bot.

    The message being handled is excluded from the history. If the history
    cannot be read, the chat is treated as known.
    """
    try:
        history = await gateway.get_recent_messages(message.chat_id, limit=2)
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Could not read chat history for {message.chat_id}: {e}")
        return False

    previous = [m for m in history if m.id != message.id]
    if not previous:
        return True
    return previous[0].from_me


async def send_welcome_message(gateway: WhatsAppGateway, chat_id: str) -> None:
    """Send the welcome banner. Failures are logged and ignored."""
    try:
        await gateway.send_message(chat_id, WELCOME_TEXT)
    except Exception as e:
        logger.warning(f"Failed to send welcome message to {chat_id}: {e}")


async def handle_location_message(
    message: IncomingMessage,
    gateway: WhatsAppGateway,
    backend: BackendClient,
    phone: str,
) -> None:
    """Forward a shared location to the backend. Never falls through to text handling."""
    try:
        if message.location is None:
            raise ValueError("Location message without coordinates")

        latitude = message.location.latitude
        longitude = message.location.longitude
        logger.info(f"Location received from {message.chat_id}: {latitude}, {longitude}")

        result = await backend.notify_location(phone, latitude, longitude)

        await gateway.send_message(message.chat_id, result.get("answer") or LOCATION_RECEIVED_TEXT)
    except Exception as e:
        logger.error(f"Error processing location from {message.chat_id}: {e}", exc_info=True)
        await gateway.reply(message.chat_id, message.id, LOCATION_ERROR_TEXT)


async def handle_order_action(
    message: IncomingMessage,
    gateway: WhatsAppGateway,
    backend: BackendClient,
    order_id: str,
    action: str,
) -> None:
    """Forward a restaurant confirm/reject decision and report the outcome."""
    _, done_text, verb = ORDER_ACTION_TEXTS[action]
    logger.info(f"Processing order action={action} for order_id={order_id}")

    try:
        result = await backend.resolve_order_action(order_id, action)
    except BackendUnavailable as e:
        logger.error(f"Order action {action} failed for order_id={order_id}: {e}")
        await gateway.reply(
            message.chat_id, message.id,
            f"❌ {BRAND}: Error al {verb} el pedido {order_id}: {e}"
        )
        return

    if result.get("status") == "success":
        text = f"✅ {BRAND}: Pedido {order_id} {done_text}. El cliente ha sido notificado."
    else:
        text = f"❌ {BRAND}: Hubo un problema al {verb} el pedido {order_id}."

    await gateway.reply(message.chat_id, message.id, text)


async def handle_text_message(
    message: IncomingMessage,
    gateway: WhatsAppGateway,
    backend: BackendClient,
    phone: str,
) -> None:
    """Forward free text to the backend chat flow and relay its answer, if any."""
    result = await backend.notify_chat(message.body, phone)

    answer = result.get("answer")
    if answer:
        await gateway.send_message(message.chat_id, answer)
