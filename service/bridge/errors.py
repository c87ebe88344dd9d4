"""
Error taxonomy for the bridge.

- ValidationError: request is missing required fields (HTTP 400)
- BackendUnavailable: order backend call failed (chat error reply / HTTP 500)
- SendFailure: WhatsApp gateway refused or failed a send (HTTP 500)
"""


class BridgeError(Exception):
    """Base class for bridge errors."""


class ValidationError(BridgeError):
    """Required request field missing."""


class BackendUnavailable(BridgeError):
    """Order backend could not be reached or answered with an error."""


class SendFailure(BridgeError):
    """WhatsApp gateway could not deliver a message."""
