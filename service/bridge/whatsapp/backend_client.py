"""
Order backend client.

Thin wrapper around the Relámpago Express backend endpoints used by the
bot. All order logic stays in the backend:
- /chat - conversational order flow
- /location - delivery location updates
- /restaurant-response/{order_id} - restaurant confirm/reject decisions
"""

from typing import Any, Dict, Optional

import httpx

from bridge.config import get_settings
from bridge.errors import BackendUnavailable

ORDER_ACTIONS = ("confirm", "reject")


class BackendClient:
    """
    Client for the order-management backend.

    Every call raises BackendUnavailable on network errors, timeouts,
    non-2xx responses or bodies that are not JSON.
    """

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self.client = client or httpx.AsyncClient(
            timeout=timeout or settings.backend_timeout_seconds
        )

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self.client.post(f"{self.base_url}{path}", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise BackendUnavailable(str(e) or e.__class__.__name__) from e
        except ValueError as e:
            raise BackendUnavailable(f"Invalid JSON from backend: {e}") from e

        return data if isinstance(data, dict) else {}

    async def notify_chat(self, message: str, phone: str) -> Dict[str, Any]:
        """
        Call POST /chat.

        Returns backend JSON; "answer" (optional) is the reply for the user.
        """
        return await self._post("/chat", {
            "message": message,
            "phone_number": phone,
        })

    async def notify_location(self, phone: str, latitude: float, longitude: float) -> Dict[str, Any]:
        """Call POST /location with a location shared by the user."""
        return await self._post("/location", {
            "phone_number": phone,
            "latitude": latitude,
            "longitude": longitude,
        })

    async def resolve_order_action(self, order_id: str, action: str) -> Dict[str, Any]:
        """
        Call POST /restaurant-response/{order_id}.

        Args:
            order_id: Order reference, passed through as-is
            action: "confirm" or "reject"
        """
        if action not in ORDER_ACTIONS:
            raise ValueError(f"Unknown order action: {action}")

        return await self._post(f"/restaurant-response/{order_id}", {"action": action})

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
