#!/usr/bin/env python3
"""
Generate demo fixtures for the traffic notifier

Writes the JSON files read by the fake providers in demo/test mode.
All fixtures are deterministic and reproducible.

Usage:
    python scripts/generate_fixtures.py
"""

import json
from pathlib import Path

FIXTURES_DIR = Path(__file__).resolve().parent.parent / "backend" / "fixtures" / "demo"


def _route(origin_lat, dest_lat, label, traffic_seconds, free_flow_seconds, distance_m):
    return {
        "label": label,
        "origin_lat": origin_lat,
        "dest_lat": dest_lat,
        "profiles": {
            "driving-traffic": {"duration": traffic_seconds, "distance": distance_m},
            "driving": {"duration": free_flow_seconds, "distance": distance_m},
        },
    }


def generate_directions_fixtures():
    """Two routes: one well over the default 30 minute threshold, one under it."""
    directions_dir = FIXTURES_DIR / "directions"
    directions_dir.mkdir(parents=True, exist_ok=True)

    routes = [
        # 54 minutes of traffic delay
        _route(40.7128, 25.7617, "New York, NY -> Miami, FL", 74520.6, 71280.2, 2052310.4),
        # 10 minutes of traffic delay
        _route(42.3601, 41.824, "Boston, MA -> Providence, RI", 3900.0, 3300.0, 80467.2),
    ]

    with open(directions_dir / "data.json", "w") as f:
        json.dump({"routes": routes}, f, indent=2)

    print(f"✓ Generated {len(routes)} directions fixtures")


def generate_message_fixtures():
    messages_dir = FIXTURES_DIR / "messages"
    messages_dir.mkdir(parents=True, exist_ok=True)

    message = {
        "subject": "Your delivery is running late due to traffic",
        "message": (
            "Heavy traffic on the route is delaying your delivery. "
            "We are sorry for the inconvenience and will keep you updated on the new arrival time."
        ),
    }

    with open(messages_dir / "data.json", "w") as f:
        json.dump({"message": message}, f, indent=2)

    print("✓ Generated message fixture")


def main():
    """Generate all demo fixtures."""
    print("Generating demo fixtures...")
    print()

    generate_directions_fixtures()
    generate_message_fixtures()

    print()
    print("✅ All fixtures generated successfully!")
    print()
    print(f"Fixture location: {FIXTURES_DIR}")


if __name__ == "__main__":
    main()
