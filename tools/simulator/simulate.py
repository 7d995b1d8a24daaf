#!/usr/bin/env python3
"""FirstHelp SOS relay traffic simulator.

Generates SOS alert traffic from simulated users for exercising the relay.
Point it at a relay whose Twilio credentials are unset (or a test account):
every accepted alert becomes a real SMS otherwise.

Usage:
    # 5 users around Montreal for 1 minute
    python -m tools.simulator.simulate --server http://localhost:5000 --users 5 --duration 60

    # Include malformed requests to exercise validation
    python -m tools.simulator.simulate --users 10 --invalid-ratio 0.2

    # Users whose devices never get a location fix
    python -m tools.simulator.simulate --no-location-ratio 1.0
"""

from __future__ import annotations

import argparse
import asyncio
import math
import random
import time
from dataclasses import dataclass

import httpx

FIRST_NAMES = ["Ada", "Grace", "Alan", "Edsger", "Barbara", "Donald", "Margaret", "Ken"]
MESSAGES = [
    None,
    "Fell on the stairs",
    "Chest pain",
    "Car accident on the highway",
    "Lost on the trail",
]


@dataclass
class SimUser:
    name: str
    contact: str
    lat: float
    lon: float
    sent: int = 0
    rejected: int = 0
    failed: int = 0
    errors: int = 0


def random_contact() -> str:
    return "555" + "".join(random.choice("0123456789") for _ in range(7))


def make_sos_payload(user: SimUser, no_location_ratio: float, invalid_ratio: float) -> dict:
    """Create one /api/send-sos body, occasionally without location or contact."""
    if random.random() < invalid_ratio:
        return {"userName": user.name, "emergencyContact": ""}

    payload: dict = {"emergencyContact": user.contact, "userName": user.name}
    if random.random() >= no_location_ratio:
        # GPS jitter of a few meters around the user's position
        payload["location"] = {
            "latitude": round(user.lat + random.uniform(-5e-5, 5e-5), 6),
            "longitude": round(user.lon + random.uniform(-5e-5, 5e-5), 6),
        }
    message = random.choice(MESSAGES)
    if message:
        payload["customMessage"] = message
    return payload


async def run_user(
    client: httpx.AsyncClient,
    user: SimUser,
    server_url: str,
    alerts_per_minute: float,
    duration_seconds: float,
    no_location_ratio: float,
    invalid_ratio: float,
) -> None:
    """Simulate a single user triggering SOS alerts."""
    interval = 60.0 / alerts_per_minute
    end_time = time.monotonic() + duration_seconds

    while time.monotonic() < end_time:
        payload = make_sos_payload(user, no_location_ratio, invalid_ratio)
        try:
            resp = await client.post(f"{server_url}/api/send-sos", json=payload)
            if resp.status_code == 200:
                user.sent += 1
            elif resp.status_code == 400:
                user.rejected += 1
            else:
                user.failed += 1
        except httpx.RequestError:
            user.errors += 1

        await asyncio.sleep(interval)


async def run_simulation(args: argparse.Namespace) -> None:
    """Run the full simulation."""
    center_lat, center_lon = args.center
    users = []
    for i in range(args.users):
        # Scatter users within radius of center
        angle = random.uniform(0, 2 * math.pi)
        dist_km = random.uniform(0, args.radius_km)
        lat = center_lat + (dist_km / 111.0) * math.cos(angle)
        lon = center_lon + (dist_km / (111.0 * math.cos(math.radians(center_lat)))) * math.sin(angle)

        users.append(SimUser(
            name=f"{random.choice(FIRST_NAMES)} #{i + 1}",
            contact=random_contact(),
            lat=lat,
            lon=lon,
        ))

    print(f"Starting simulation: {args.users} users, {args.alerts_per_minute} alerts/min each")
    print(f"  Center: {center_lat:.4f}, {center_lon:.4f}")
    print(f"  Radius: {args.radius_km} km")
    print(f"  Duration: {args.duration}s")
    print(f"  Server: {args.server}")
    print()

    async with httpx.AsyncClient(timeout=10.0) as client:
        try:
            resp = await client.get(f"{args.server}/api/health")
            health = resp.json()
            if not health.get("smsConfigured"):
                print("  Relay reports SMS not configured: alerts will fail with 500.\n")
        except (httpx.RequestError, ValueError):
            print("  Relay health check failed, continuing anyway.\n")

        start = time.monotonic()
        tasks = [
            run_user(client, user, args.server, args.alerts_per_minute, args.duration,
                     args.no_location_ratio, args.invalid_ratio)
            for user in users
        ]
        await asyncio.gather(*tasks)
        elapsed = time.monotonic() - start

        print(f"\nSimulation complete in {elapsed:.1f}s")
        print(f"  Sent: {sum(u.sent for u in users)}")
        print(f"  Rejected (400): {sum(u.rejected for u in users)}")
        print(f"  Failed (5xx): {sum(u.failed for u in users)}")
        print(f"  Transport errors: {sum(u.errors for u in users)}")

        # Check relay stats
        try:
            resp = await client.get(f"{args.server}/api/stats")
            if resp.status_code == 200:
                stats = resp.json()
                print("\nRelay stats:")
                print(f"  SOS received: {stats['sos_received']}")
                print(f"  SOS sent: {stats['sos_sent']}")
                print(f"  SOS rejected: {stats['sos_rejected']}")
                print(f"  SOS failed: {stats['sos_failed']}")
        except (httpx.RequestError, ValueError, KeyError):
            pass


def main():
    parser = argparse.ArgumentParser(description="FirstHelp SOS relay traffic simulator")
    parser.add_argument("--server", default="http://localhost:5000", help="Relay URL")
    parser.add_argument("--users", type=int, default=5, help="Number of simulated users")
    parser.add_argument("--duration", type=int, default=60, help="Simulation duration in seconds")
    parser.add_argument("--alerts-per-minute", type=float, default=2, help="Alerts per minute per user")
    parser.add_argument("--center", type=str, default="45.5017,-73.5673",
                        help="Center lat,lon (default: Montreal)")
    parser.add_argument("--radius-km", type=float, default=5.0, help="Scatter radius in km")
    parser.add_argument("--no-location-ratio", type=float, default=0.1,
                        help="Fraction of alerts sent without a location fix")
    parser.add_argument("--invalid-ratio", type=float, default=0.0,
                        help="Fraction of alerts sent without an emergency contact")

    args = parser.parse_args()

    # Parse center
    lat, lon = args.center.split(",")
    args.center = (float(lat), float(lon))

    asyncio.run(run_simulation(args))


if __name__ == "__main__":
    main()
