from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from notifications.models import RoutePoint

from .contracts import DirectionsProvider, MessageProvider, NotificationTransport

FIXTURES_ROOT = Path(__file__).parent.parent / "fixtures" / "demo"


class _FixtureLoader:
    def __init__(self, fixture_name: str):
        self.path = FIXTURES_ROOT / fixture_name / "data.json"
        with self.path.open("r", encoding="utf-8") as f:
            self.data = json.load(f)


class FakeDirectionsProvider(DirectionsProvider, _FixtureLoader):
    def __init__(self) -> None:
        _FixtureLoader.__init__(self, "directions")

    async def route(
        self,
        origin: RoutePoint,
        destination: RoutePoint,
        profile: str,
    ) -> Optional[Dict[str, float]]:
        routes = self.data.get("routes", [])
        for route in routes:
            if (
                round(origin.lat, 4) == round(route["origin_lat"], 4)
                and round(destination.lat, 4) == round(route["dest_lat"], 4)
            ):
                return route["profiles"].get(profile)
        if routes:
            return routes[0]["profiles"].get(profile)
        return None


class FakeMessageProvider(MessageProvider, _FixtureLoader):
    def __init__(self) -> None:
        _FixtureLoader.__init__(self, "messages")
        self.prompts: List[str] = []

    async def generate_json(self, prompt: str, schema: Dict[str, Any]) -> Optional[str]:
        self.prompts.append(prompt)
        message = self.data.get("message")
        if message is None:
            return None
        return json.dumps(message)


class RecordingNotificationTransport(NotificationTransport):
    """Accepts every message and keeps it for inspection."""

    def __init__(self, accept: bool = True) -> None:
        self.accept = accept
        self.sent: List[Tuple[str, str]] = []

    async def send(self, subject: str, message: str) -> bool:
        self.sent.append((subject, message))
        return self.accept
