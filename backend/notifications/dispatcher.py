"""
Notification Dispatcher

One-shot hand-off of a generated message to the notification transport.
No retries here; retrying is the workflow's job.
"""

import logging

from providers.contracts import NotificationTransport

from .errors import InputValidationError
from .models import NotificationMessage

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(self, transport: NotificationTransport):
        self.transport = transport

    async def dispatch(self, message: NotificationMessage) -> bool:
        """Send ``message`` once. Returns True when the transport accepted it."""
        if not isinstance(message, NotificationMessage):
            raise InputValidationError("A NotificationMessage is required")

        accepted = await self.transport.send(message.subject, message.body)
        if accepted:
            logger.info(f"Notification accepted for delivery: {message.subject!r}")
        else:
            logger.warning(f"Notification transport declined: {message.subject!r}")
        return bool(accepted)
