from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from notifications.models import RoutePoint

# Mapbox routing profiles used for the comparison
PROFILE_DRIVING_TRAFFIC = "driving-traffic"
PROFILE_DRIVING = "driving"


class DirectionsProvider(Protocol):
    async def route(
        self,
        origin: RoutePoint,
        destination: RoutePoint,
        profile: str,
    ) -> Optional[Dict[str, float]]:
        """Return ``{"duration": seconds, "distance": meters}`` or None when no route exists."""
        ...


class MessageProvider(Protocol):
    async def generate_json(self, prompt: str, schema: Dict[str, Any]) -> Optional[str]:
        """Return the raw structured completion, or None when the model produced nothing."""
        ...


class NotificationTransport(Protocol):
    async def send(self, subject: str, message: str) -> bool:
        ...
