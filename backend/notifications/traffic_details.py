"""
Route Data Fetcher

Asks the directions provider for the same route twice, once with live traffic
and once for free-flow conditions, and wraps both into a RouteComparison.
"""

import asyncio
import logging
import math
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from providers.contracts import (
    PROFILE_DRIVING,
    PROFILE_DRIVING_TRAFFIC,
    DirectionsProvider,
)

from .delay_resolver import TrafficDelayResolver
from .errors import InputValidationError, NoRouteFoundError, ProviderDataError
from .models import DurationUnit, RouteComparison, RouteQuery, round_half_up

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _check_route_numbers(route: Dict[str, Any]) -> None:
    for key in ("duration", "distance"):
        value = route.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ProviderDataError(f"Directions provider returned an invalid {key}: {value!r}")


class TrafficDetailsFetcher:
    """Builds a RouteComparison from two concurrent directions requests."""

    def __init__(
        self,
        directions: DirectionsProvider,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.directions = directions
        self._clock = clock or _utc_now

    async def fetch(self, query: RouteQuery) -> RouteComparison:
        """
        Fetch comparative travel times for a route.

        Args:
            query: Origin, destination and optional departure time

        Returns:
            RouteComparison with durations in whole seconds and distance in whole meters

        Raises:
            InputValidationError: query is not a RouteQuery
            NoRouteFoundError: Either request came back without a route (not retryable)
            ProviderDataError: A route carried a missing or non-finite number
            TransientProviderError: Network or upstream failure (retryable)
            ConfigurationError: The provider rejected its credential
        """
        if not isinstance(query, RouteQuery):
            raise InputValidationError("A RouteQuery is required")

        started = time.monotonic()
        origin, destination = query.origin, query.destination
        logger.info(
            f"Fetching traffic data {origin.coordinates} -> {destination.coordinates} "
            f"(departure: {query.departure_time.isoformat() if query.departure_time else 'now'})"
        )

        tasks = [
            asyncio.ensure_future(self.directions.route(origin, destination, PROFILE_DRIVING_TRAFFIC)),
            asyncio.ensure_future(self.directions.route(origin, destination, PROFILE_DRIVING)),
        ]
        try:
            traffic_route, free_flow_route = await asyncio.gather(*tasks)
        except BaseException:
            # cancel the other leg when one fails
            for task in tasks:
                task.cancel()
            raise

        if not traffic_route or not free_flow_route:
            logger.error(
                f"No routes found: traffic={'yes' if traffic_route else 'no'}, "
                f"free_flow={'yes' if free_flow_route else 'no'}"
            )
            raise NoRouteFoundError("No routes found in directions provider response")

        for route in (traffic_route, free_flow_route):
            _check_route_numbers(route)

        departure_time = query.departure_time or self._clock()
        arrival_time = departure_time + timedelta(seconds=traffic_route["duration"])

        comparison = RouteComparison(
            duration_with_traffic=round_half_up(traffic_route["duration"]),
            duration_without_traffic=round_half_up(free_flow_route["duration"]),
            unit=DurationUnit.SECONDS,
            distance=round_half_up(traffic_route["distance"]),
            route_origin_label=origin.label,
            route_destination_label=destination.label,
            departure_time=departure_time,
            estimated_arrival_time=arrival_time,
        )

        delay_seconds = comparison.duration_with_traffic - comparison.duration_without_traffic
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Traffic data fetched in {elapsed_ms}ms: {comparison.route_origin_label} -> "
            f"{comparison.route_destination_label}, "
            f"{round(comparison.distance / 1000, 2)} km, "
            f"delay {round_half_up(delay_seconds / 60)} min "
            f"({TrafficDelayResolver.traffic_impact_pct(delay_seconds, comparison.duration_without_traffic)}%)"
        )
        return comparison
