"""
Traffic Message Generator

Builds a prompt from a delay resolution and asks the language model for a
structured {subject, message} notification.

Callers only invoke this when the delay exceeds the threshold; it does not
re-check the decision.
"""

import logging
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from providers.contracts import MessageProvider

from .errors import InputValidationError, MessageParseError, MissingOutputError
from .models import DelayResolution, DurationUnit, NotificationMessage, format_timestamp

logger = logging.getLogger(__name__)

TRAFFIC_MESSAGE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "subject": {
            "type": "string",
            "description": "Brief email subject line about the traffic delay",
        },
        "message": {
            "type": "string",
            "description": "Professional but empathetic message to customer",
        },
    },
    "required": ["subject", "message"],
    "additionalProperties": False,
}


class TrafficMessagePayload(BaseModel):
    """Exact shape the model has to return."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)


def build_prompt(resolution: DelayResolution) -> str:
    details = resolution.source_comparison
    unit = DurationUnit(details.unit).value if details.unit else DurationUnit.SECONDS.value
    return f"""Generate a friendly customer notification about a traffic delay for a delivery.

---- TRAFFIC DELAY DETAILS ----
Origin: {details.route_origin_label}
Destination: {details.route_destination_label}
Delay Minutes: {resolution.delay_minutes}
Estimated Arrival Time: {format_timestamp(details.estimated_arrival_time)}
Distance: {details.distance} meters
Duration with Traffic: {details.duration_with_traffic} {unit}
Duration without Traffic: {details.duration_without_traffic} {unit}

---- MESSAGE REQUIREMENTS ----
- Return a JSON object with the following fields: subject, message.
- Subject should be concise and informative.
- Message should be professional but empathetic, acknowledging the inconvenience and providing reassurance."""


class TrafficMessageGenerator:
    """Turns a delay resolution into a NotificationMessage via the message provider."""

    def __init__(self, provider: MessageProvider):
        self.provider = provider

    async def generate(self, resolution: DelayResolution) -> NotificationMessage:
        """
        Generate the customer notification for a delay.

        Raises:
            InputValidationError: resolution is not a DelayResolution
            MissingOutputError: The model returned no content
            MessageParseError: The content does not match TRAFFIC_MESSAGE_SCHEMA
        """
        if not isinstance(resolution, DelayResolution):
            raise InputValidationError("A DelayResolution is required")

        content = await self.provider.generate_json(build_prompt(resolution), TRAFFIC_MESSAGE_SCHEMA)
        if not content:
            raise MissingOutputError("No content received from the language model")

        try:
            payload = TrafficMessagePayload.model_validate_json(content)
        except ValidationError as e:
            logger.error(f"Unparseable structured output: {content[:200]!r}")
            raise MessageParseError("Failed to parse structured output from the language model") from e

        logger.info(f"Generated traffic message: {payload.subject!r}")
        return NotificationMessage(subject=payload.subject, body=payload.message)
