#!/usr/bin/env python3
"""
Start one traffic notifier run from the command line

Defaults to New York -> Miami; pass coordinates to try other routes.

Usage:
    python scripts/start_traffic_notifier.py
    python scripts/start_traffic_notifier.py --origin 42.3601,-71.0589 --destination 41.824,-71.4128 --threshold 5
"""

import argparse
import asyncio
import json
import logging
import sys

from common.config import load_settings
from notifications import RoutePoint, RouteQuery
from notifications.errors import TrafficNotifierError
from providers import load_providers
from server import build_workflow


def _parse_point(raw: str, address: str = None) -> RoutePoint:
    lat, lng = (float(part) for part in raw.split(",", maxsplit=1))
    return RoutePoint(lat, lng, address)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check a route for traffic delay and notify if needed.")
    parser.add_argument("--origin", default="40.7128,-74.006", help="lat,lng")
    parser.add_argument("--origin-address", default="New York, NY")
    parser.add_argument("--destination", default="25.7617,-80.1918", help="lat,lng")
    parser.add_argument("--destination-address", default="Miami, FL")
    parser.add_argument("--departure-time", help="ISO-8601 timestamp, defaults to now")
    parser.add_argument("--threshold", type=float, help="Delay threshold in minutes")
    parser.add_argument("--run-id", help="Stable run identifier")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    settings = load_settings()
    providers = load_providers(settings)
    workflow = build_workflow(settings, providers)
    query = RouteQuery(
        origin=_parse_point(args.origin, args.origin_address),
        destination=_parse_point(args.destination, args.destination_address),
        departure_time=args.departure_time,
    )
    run_id = args.run_id or workflow.new_run_id()
    print(f"Started workflow {run_id}")
    try:
        result = await workflow.run(query, args.threshold, run_id=run_id)
    finally:
        await providers.aclose()
    print(json.dumps(result.to_dict(), indent=2))
    return 0


def main() -> None:
    args = parse_args()
    try:
        sys.exit(asyncio.run(run(args)))
    except TrafficNotifierError as e:
        logging.getLogger(__name__).error(f"Run failed at stage {e.stage}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
