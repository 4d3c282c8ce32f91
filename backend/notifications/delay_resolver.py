"""
Traffic Delay Resolver - Pure domain logic

Turns a route comparison into a delay figure in minutes and decides whether it
is worth notifying anyone about.

- No I/O, no external calls
- Deterministic: identical inputs always give an identical resolution
- Safe to retry any number of times
"""

import math
from numbers import Real
from typing import Any

from .errors import InputValidationError
from .models import DelayResolution, DurationUnit, RouteComparison, round_half_up


class TrafficDelayResolver:
    """Pure functions for traffic delay resolution."""

    DEFAULT_THRESHOLD_MINUTES = 30

    @staticmethod
    def _is_number(value: Any) -> bool:
        return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)

    @staticmethod
    def normalize_unit(unit: Any) -> DurationUnit:
        """Missing unit means seconds; anything unknown is a malformed input."""
        if unit is None or unit == "":
            return DurationUnit.SECONDS
        try:
            return DurationUnit(unit)
        except ValueError as e:
            raise InputValidationError(f"Unsupported duration unit: {unit!r}") from e

    @staticmethod
    def to_minutes(delay: float, unit: DurationUnit) -> int:
        """
        Convert a delay to whole minutes.

        The conversion happens first and the result is rounded once, so
        90 seconds becomes 2 minutes and 0.5 hours becomes 30.
        """
        if unit == DurationUnit.MINUTES:
            return round_half_up(delay)
        if unit == DurationUnit.HOURS:
            return round_half_up(delay * 60)
        return round_half_up(delay / 60)

    @staticmethod
    def traffic_impact_pct(delay: float, duration_without_traffic: float) -> int:
        """Delay as a percentage of the free-flow duration; 0 when that duration is 0."""
        if duration_without_traffic <= 0:
            return 0
        return round_half_up(delay / duration_without_traffic * 100)

    @staticmethod
    def resolve(
        comparison: RouteComparison,
        threshold_minutes: float = DEFAULT_THRESHOLD_MINUTES,
    ) -> DelayResolution:
        """
        Resolve the traffic delay for a route comparison.

        Args:
            comparison: Output of the route data fetcher
            threshold_minutes: Delay above which a notification is due (>= 0)

        Returns:
            DelayResolution; ``delay_exceeds_threshold`` is a strict comparison,
            a delay equal to the threshold does not exceed it.

        Raises:
            InputValidationError: Missing comparison, non-numeric durations,
                unknown unit or negative threshold
        """
        if comparison is None:
            raise InputValidationError("Traffic details are required")

        if not TrafficDelayResolver._is_number(threshold_minutes):
            raise InputValidationError("Threshold minutes must be a number")
        if threshold_minutes < 0:
            raise InputValidationError("Threshold minutes must be non-negative")

        with_traffic = getattr(comparison, "duration_with_traffic", None)
        without_traffic = getattr(comparison, "duration_without_traffic", None)
        if not (
            TrafficDelayResolver._is_number(with_traffic)
            and TrafficDelayResolver._is_number(without_traffic)
        ):
            raise InputValidationError("Invalid duration data in traffic details")

        unit = TrafficDelayResolver.normalize_unit(getattr(comparison, "unit", None))
        delay = with_traffic - without_traffic
        delay_minutes = TrafficDelayResolver.to_minutes(delay, unit)

        return DelayResolution(
            delay_minutes=delay_minutes,
            delay_exceeds_threshold=delay_minutes > threshold_minutes,
            threshold_minutes=threshold_minutes,
            traffic_impact_pct=TrafficDelayResolver.traffic_impact_pct(delay, without_traffic),
            source_comparison=comparison,
        )


def resolve_traffic_delay(
    comparison: RouteComparison,
    threshold_minutes: float = TrafficDelayResolver.DEFAULT_THRESHOLD_MINUTES,
) -> DelayResolution:
    return TrafficDelayResolver.resolve(comparison, threshold_minutes)
