"""
WhatsApp bot module for Relámpago Express.

ARCHITECTURE: Thin relay layer - NO order logic duplication!
- Receives events from the WhatsApp gateway webhook
- Tracks the session lifecycle (QR, authenticated, ready, disconnected)
- Classifies chat messages and routes them to the order backend
- Sends the backend answers back to WhatsApp

All order logic stays in the backend:
- /chat - conversational order flow
- /location - delivery locations
- /restaurant-response/{order_id} - restaurant decisions
"""

from .bot import handle_gateway_event
from .backend_client import BackendClient
from .gateway import WhatsAppGateway
from .session import WhatsAppSession, ViewerHub

__all__ = [
    "handle_gateway_event",
    "BackendClient",
    "WhatsAppGateway",
    "WhatsAppSession",
    "ViewerHub",
]
