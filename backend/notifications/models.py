"""
Traffic notifier domain models.

Each pipeline stage builds its own output value and never mutates a value it
did not produce, so everything here is frozen.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from .errors import InputValidationError


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def format_coordinate(value: float) -> str:
    """Render a coordinate the way JavaScript prints numbers: 40.0 -> "40"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_timestamp(value: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a trailing Z."""
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_departure_time(value: Union[datetime, str, None]) -> Optional[datetime]:
    """Accept a datetime or ISO-8601 string; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise InputValidationError(f"Invalid departure_time: {value!r}") from e
    if not isinstance(value, datetime):
        raise InputValidationError("departure_time must be a datetime or ISO-8601 string")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class DurationUnit(str, Enum):
    """Unit tag carried by a route comparison's durations."""
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"


@dataclass(frozen=True)
class RoutePoint:
    """A coordinate pair with an optional human-readable address."""
    lat: float
    lng: float
    address: Optional[str] = None

    def __post_init__(self):
        for name in ("lat", "lng"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InputValidationError(f"{name} must be a number")
            if math.isnan(value):
                raise InputValidationError(f"{name} must not be NaN")
        if not -90 <= self.lat <= 90:
            raise InputValidationError(f"lat must be within [-90, 90], got {self.lat}")
        if not -180 <= self.lng <= 180:
            raise InputValidationError(f"lng must be within [-180, 180], got {self.lng}")

    @property
    def coordinates(self) -> str:
        return f"{format_coordinate(self.lat)},{format_coordinate(self.lng)}"

    @property
    def label(self) -> str:
        """Display label: the address when given, else "lat, lng"."""
        return self.address or f"{format_coordinate(self.lat)}, {format_coordinate(self.lng)}"


@dataclass(frozen=True)
class RouteQuery:
    """Pipeline input: one origin/destination pair."""
    origin: RoutePoint
    destination: RoutePoint
    departure_time: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.origin, RoutePoint) or not isinstance(self.destination, RoutePoint):
            raise InputValidationError("origin and destination must be RoutePoint values")
        object.__setattr__(self, "departure_time", parse_departure_time(self.departure_time))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RouteQuery":
        try:
            origin = data["origin"]
            destination = data["destination"]
            return cls(
                origin=RoutePoint(origin["lat"], origin["lng"], origin.get("address")),
                destination=RoutePoint(destination["lat"], destination["lng"], destination.get("address")),
                departure_time=data.get("departure_time"),
            )
        except (KeyError, TypeError) as e:
            raise InputValidationError(f"Malformed route query: {e}") from e


@dataclass(frozen=True)
class RouteComparison:
    """Travel durations for the same route with and without live traffic."""
    duration_with_traffic: float
    duration_without_traffic: float
    distance: int  # meters
    route_origin_label: str
    route_destination_label: str
    departure_time: datetime
    estimated_arrival_time: datetime
    unit: DurationUnit = DurationUnit.SECONDS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration": {
                "with_traffic": self.duration_with_traffic,
                "without_traffic": self.duration_without_traffic,
                "unit": DurationUnit(self.unit).value if self.unit else None,
            },
            "distance": self.distance,
            "route": {
                "origin": self.route_origin_label,
                "destination": self.route_destination_label,
                "departure_time": format_timestamp(self.departure_time),
                "estimated_arrival_time": format_timestamp(self.estimated_arrival_time),
            },
        }


@dataclass(frozen=True)
class DelayResolution:
    """Delay in minutes and the threshold decision derived from a comparison."""
    delay_minutes: int
    delay_exceeds_threshold: bool
    threshold_minutes: float
    traffic_impact_pct: int  # informational only
    source_comparison: RouteComparison

    def to_dict(self) -> Dict[str, Any]:
        return {
            "delay_exceeds_threshold": self.delay_exceeds_threshold,
            "delay_minutes": self.delay_minutes,
            "threshold_minutes": self.threshold_minutes,
            "traffic_impact_pct": self.traffic_impact_pct,
            "details": self.source_comparison.to_dict(),
        }


@dataclass(frozen=True)
class NotificationMessage:
    """Customer-facing subject and body produced by the message generator."""
    subject: str
    body: str

    def __post_init__(self):
        if not isinstance(self.subject, str) or not self.subject.strip():
            raise InputValidationError("subject must be a non-empty string")
        if not isinstance(self.body, str) or not self.body.strip():
            raise InputValidationError("body must be a non-empty string")

    def to_dict(self) -> Dict[str, str]:
        return {"subject": self.subject, "message": self.body}


@dataclass(frozen=True)
class NotNotified:
    """Outcome when the delay stayed within the threshold."""
    pass


@dataclass(frozen=True)
class Notified:
    """Outcome when a message was generated and handed to the transport."""
    message: NotificationMessage
    sent: bool


NotificationOutcome = Union[NotNotified, Notified]


@dataclass(frozen=True)
class PipelineResult:
    """Final composite assembled by the workflow from each stage's output."""
    run_id: str
    comparison: RouteComparison
    resolution: DelayResolution
    outcome: NotificationOutcome
    states: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def notification_sent(self) -> bool:
        return isinstance(self.outcome, Notified) and self.outcome.sent

    @property
    def message(self) -> Optional[NotificationMessage]:
        if isinstance(self.outcome, Notified):
            return self.outcome.message
        return None

    def to_dict(self) -> Dict[str, Any]:
        message = self.message
        return {
            "runId": self.run_id,
            "trafficDetails": self.comparison.to_dict(),
            "delayResolution": self.resolution.to_dict(),
            "messageFromAI": message.to_dict() if message else None,
            "notificationSent": self.notification_sent,
            "states": list(self.states),
        }
