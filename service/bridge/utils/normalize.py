"""
Phone number normalization utilities.

Ensures consistent format for WhatsApp identifiers across the backend
and the gateway.
"""

import re
from typing import Optional

CHAT_SUFFIX = "@c.us"
GROUP_SUFFIX = "@g.us"


def normalize_phone(value: Optional[object]) -> str:
    """
    Normalize a phone number to digits only.

    Input formats handled:
    - "+1 (555) 123-4567"
    - "555-123-4567"
    - "5551234567@c.us" (suffix digits are kept, suffix dropped)
    - 5551234567 (non-string values are stringified)

    No length or country code validation: malformed input yields whatever
    digits remain, possibly "".
    """
    if value is None:
        return ""

    value = str(value).strip()

    if value.startswith("+"):
        value = value[1:]

    return re.sub(r"\D", "", value)


def to_chat_id(value: Optional[object]) -> str:
    """
    Build a WhatsApp chat ID ("<digits>@c.us") from a raw phone value.

    Values that already carry the suffix are not suffixed twice.
    """
    raw = "" if value is None else str(value).strip()

    if CHAT_SUFFIX in raw:
        raw = raw.split(CHAT_SUFFIX, 1)[0]

    return f"{normalize_phone(raw)}{CHAT_SUFFIX}"


def is_group_chat(chat_id: Optional[str]) -> bool:
    """Check whether a chat ID addresses a group conversation."""
    return bool(chat_id) and chat_id.endswith(GROUP_SUFFIX)
