from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from common.config import Settings

from notifications.expo_push import ExpoPushClient
from .contracts import DirectionsProvider, MessageProvider, NotificationTransport
from .fake_providers import (
    FakeDirectionsProvider,
    FakeMessageProvider,
    RecordingNotificationTransport,
)
from .real_providers import (
    ExpoPushTransport,
    GeminiMessageProvider,
    LoggingNotificationTransport,
    MapboxDirectionsProvider,
)


@dataclass
class ProviderSet:
    directions: DirectionsProvider
    messages: MessageProvider
    transport: NotificationTransport

    async def aclose(self) -> None:
        """Release HTTP clients held by providers that keep one open."""
        for provider in (self.directions, self.messages, self.transport):
            close = getattr(provider, "aclose", None)
            if close is not None:
                await close()


def _build_prod(settings: Settings) -> ProviderSet:
    # Both constructors raise ConfigurationError on a missing credential
    directions = MapboxDirectionsProvider(
        access_token=settings.mapbox_access_token,
        timeout=settings.http_timeout_seconds,
    )
    messages = GeminiMessageProvider(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
    )
    if settings.expo_push_token:
        transport: NotificationTransport = ExpoPushTransport(
            settings.expo_push_token,
            ExpoPushClient(
                access_token=settings.expo_access_token or None,
                timeout=settings.http_timeout_seconds,
            ),
        )
    else:
        transport = LoggingNotificationTransport()
    return ProviderSet(directions=directions, messages=messages, transport=transport)


def _build_fake() -> ProviderSet:
    return ProviderSet(
        directions=FakeDirectionsProvider(),
        messages=FakeMessageProvider(),
        transport=RecordingNotificationTransport(),
    )


def load_providers(settings: Settings) -> ProviderSet:
    if settings.uses_fake_providers:
        return _build_fake()
    return _build_prod(settings)
