from __future__ import annotations

import asyncio
import logging
import math
import os
from typing import Any, Dict, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from notifications.errors import (
    ConfigurationError,
    ProviderDataError,
    TransientProviderError,
)
from notifications.expo_push import ExpoPushClient
from notifications.models import RoutePoint, format_coordinate

from .contracts import DirectionsProvider, MessageProvider, NotificationTransport

logger = logging.getLogger(__name__)

MAPBOX_DIRECTIONS_URL = "https://api.mapbox.com/directions/v5/mapbox"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


class MapboxDirectionsProvider(DirectionsProvider):
    """Mapbox Directions v5. The token is checked here, not on the first request."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if access_token is None:
            access_token = os.environ.get("MAPBOX_ACCESS_TOKEN", "")
        if not access_token:
            raise ConfigurationError("MAPBOX_ACCESS_TOKEN is not set")
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport

    async def route(
        self,
        origin: RoutePoint,
        destination: RoutePoint,
        profile: str,
    ) -> Optional[Dict[str, float]]:
        # Mapbox wants lng,lat
        coords_str = (
            f"{format_coordinate(origin.lng)},{format_coordinate(origin.lat)};"
            f"{format_coordinate(destination.lng)},{format_coordinate(destination.lat)}"
        )
        url = f"{MAPBOX_DIRECTIONS_URL}/{profile}/{coords_str}"
        params = {
            "access_token": self.access_token,
            "geometries": "geojson",
            "overview": "simplified",
            "alternatives": "false",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise TransientProviderError(f"Mapbox {profile} request failed: {e}") from e

        if response.status_code in (401, 403):
            raise ConfigurationError(
                f"Mapbox rejected the access token ({response.status_code})"
            )
        if not response.is_success:
            raise TransientProviderError(
                f"Mapbox {profile} API error: {response.status_code} - {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransientProviderError(f"Mapbox {profile} returned a non-JSON body") from e

        if data.get("code") in ("NoRoute", "NoSegment"):
            return None
        routes = data.get("routes") or []
        if not routes:
            return None

        route = routes[0]
        duration = route.get("duration")
        distance = route.get("distance")
        if not isinstance(duration, (int, float)) or not isinstance(distance, (int, float)):
            raise ProviderDataError(f"Mapbox {profile} route is missing duration or distance")
        if not (math.isfinite(duration) and math.isfinite(distance)):
            raise ProviderDataError(f"Mapbox {profile} route has a non-finite duration or distance")
        logger.debug(f"Mapbox {profile}: duration={duration}s distance={distance}m")
        return {"duration": float(duration), "distance": float(distance)}


class GeminiMessageProvider(MessageProvider):
    """
    Structured completions from Gemini.

    The google-genai client is built once here and reused for every run; it
    keeps no per-run state.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_GEMINI_MODEL,
        client: Optional[Any] = None,
    ) -> None:
        if client is None:
            if api_key is None:
                api_key = os.environ.get("GEMINI_API_KEY", "") or os.environ.get("GOOGLE_API_KEY", "")
            if not api_key:
                raise ConfigurationError(
                    "GEMINI_API_KEY is not set; the language model client cannot be initialised"
                )
            client = genai.Client(api_key=api_key)
        self.client = client
        self.model = model

    async def generate_json(self, prompt: str, schema: Dict[str, Any]) -> Optional[str]:
        config = genai_types.GenerateContentConfig(
            response_mime_type="application/json",
            response_json_schema=schema,
        )
        loop = asyncio.get_event_loop()
        try:
            response_obj = await loop.run_in_executor(
                None,
                lambda: self.client.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=config,
                ),
            )
        except genai_errors.ClientError as e:
            if e.code in (401, 403):
                raise ConfigurationError(f"Gemini rejected the API key ({e.code})") from e
            if e.code == 429:
                raise TransientProviderError(f"Gemini rate limited: {e}") from e
            raise ProviderDataError(f"Gemini rejected the request: {e}") from e
        except genai_errors.APIError as e:
            raise TransientProviderError(f"Gemini API error: {e}") from e
        except httpx.HTTPError as e:
            raise TransientProviderError(f"Gemini request failed: {e}") from e
        return response_obj.text


class ExpoPushTransport(NotificationTransport):
    def __init__(self, push_token: str, client: Optional[ExpoPushClient] = None) -> None:
        self.push_token = push_token
        self.client = client or ExpoPushClient()

    async def send(self, subject: str, message: str) -> bool:
        return await self.client.send_notification(
            push_token=self.push_token,
            title=subject,
            body=message,
            data={"type": "traffic_delay"},
        )

    async def aclose(self) -> None:
        await self.client.close()


class LoggingNotificationTransport(NotificationTransport):
    """Stand-in transport used when no push token is configured; logs and accepts."""

    async def send(self, subject: str, message: str) -> bool:
        logger.info(f"Sending notification: subject={subject!r} message={message!r}")
        return True
