"""
Expo Push Notifications Client

Sends push notifications via Expo Push API.
https://docs.expo.dev/push-notifications/overview/

Used as the delivery transport for traffic delay notifications.
"""

import httpx
import logging
from typing import Optional, Dict

logger = logging.getLogger(__name__)

# Expo Push API endpoint
EXPO_PUSH_API_URL = "https://exp.host/--/api/v2/push/send"


class ExpoPushClient:
    """Async client for sending push notifications via Expo."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Expo push client.

        Args:
            access_token: Optional Expo access token (may not be required for basic usage)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.access_token = access_token
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def send_notification(
        self,
        push_token: str,
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
        sound: str = "default",
    ) -> bool:
        """
        Send a push notification via Expo.

        One request, no retries. Failures are logged and reported as False.

        Args:
            push_token: Expo push token
            title: Notification title
            body: Notification body
            data: Optional data payload
            sound: Sound to play ("default" or "none")

        Returns:
            True if accepted by Expo, False otherwise
        """
        if not push_token:
            logger.warning("Cannot send notification: empty push token")
            return False

        if not push_token.startswith("ExponentPushToken["):
            logger.warning(f"Invalid push token format: {push_token[:20]}...")
            return False

        payload = {
            "to": push_token,
            "title": title,
            "body": body,
            "sound": sound,
        }

        if data:
            payload["data"] = data

        try:
            response = await self.client.post(
                EXPO_PUSH_API_URL,
                json=payload,
                headers=self._get_headers(),
            )
        except httpx.HTTPError as e:
            logger.error(f"Failed to send push notification: {e}")
            return False

        if response.status_code != 200:
            logger.error(
                f"Expo push API error: {response.status_code} {response.text[:200]}"
            )
            return False

        try:
            result = response.json()
        except ValueError:
            logger.error("Expo push API returned a non-JSON body")
            return False

        ticket = result.get("data", {})
        if isinstance(ticket, list):
            ticket = ticket[0] if ticket else {}
        if ticket.get("status") == "error":
            error = ticket.get("message", "Unknown error")
            logger.error(f"Expo push error: {error}")
            return False

        logger.info(f"Push sent to {push_token[:30]}... (title: {title[:30]})")
        return True

    def _get_headers(self) -> dict:
        """Get HTTP headers for Expo API."""
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
