"""
Message dispatcher - classifies incoming text.

Order commands (#confirmar / #rechazar) and the help keyword are handled
by the bot itself. Courier shorthands are only detected here; the backend
interprets them through the regular /chat passthrough.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

CONFIRM_COMMAND = "#confirmar"
REJECT_COMMAND = "#rechazar"

PRICE_PREFIXES = ("#precio", "#costo", "#monto", "#p ", "#c ", "#m ")
COMPLETION_PREFIXES = ("#completar", "#entregado", "#co ", "#en ")
ACTIVE_ORDERS_COMMANDS = ("#mispedidos", "#pedidos")

HELP_KEYWORDS = ("ayuda", "help")


class MessageKind(str, Enum):
    CONFIRM = "confirm"
    REJECT = "reject"
    HELP = "help"
    TEXT = "text"


class CourierCommand(str, Enum):
    PRICE = "price"
    COMPLETION = "completion"
    ACTIVE_ORDERS = "active_orders"


@dataclass
class ClassifiedMessage:
    kind: MessageKind
    order_id: Optional[str] = None
    courier_command: Optional[CourierCommand] = None


def parse_order_id(text: str) -> Optional[str]:
    """Return the token following the command word, or None."""
    parts = text.split()
    if len(parts) >= 2:
        return parts[1]
    return None


def detect_courier_command(text: str) -> Optional[CourierCommand]:
    """Detect courier shorthand commands (informational only)."""
    if text.startswith(PRICE_PREFIXES):
        return CourierCommand.PRICE
    if text.startswith(COMPLETION_PREFIXES):
        return CourierCommand.COMPLETION
    if text in ACTIVE_ORDERS_COMMANDS:
        return CourierCommand.ACTIVE_ORDERS
    return None


def classify_message(text: str) -> ClassifiedMessage:
    """
    Classify message text, first match wins.

    Returns:
        CONFIRM / REJECT - order command (order_id None means bad usage)
        HELP - help keyword, case-insensitive exact match
        TEXT - anything else, forwarded to the backend; courier_command is
               set when a courier shorthand was recognised
    """
    text = text or ""

    if text.startswith(CONFIRM_COMMAND):
        return ClassifiedMessage(MessageKind.CONFIRM, order_id=parse_order_id(text))

    if text.startswith(REJECT_COMMAND):
        return ClassifiedMessage(MessageKind.REJECT, order_id=parse_order_id(text))

    courier_command = detect_courier_command(text)

    if text.lower() in HELP_KEYWORDS:
        return ClassifiedMessage(MessageKind.HELP)

    return ClassifiedMessage(MessageKind.TEXT, courier_command=courier_command)
