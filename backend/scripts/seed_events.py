"""Generate realistic fake tracking events for development and demos.

Usage:
    python -m scripts.seed_events --api-key <PROJECT_API_KEY> [--url http://localhost:8000]
    python -m scripts.seed_events --api-key proj_abc123 --days 60 --count 2000
"""

import argparse
import random
import sys
from datetime import datetime, timedelta, timezone

import httpx

PAGES = [
    "/",
    "/pricing",
    "/features",
    "/about",
    "/blog",
    "/blog/getting-started",
    "/docs",
    "/docs/api",
    "/signup",
]

REFERRERS = [
    "https://google.com",
    "https://twitter.com",
    "https://github.com",
    "https://news.ycombinator.com",
    "",
    "",
]

DEVICES = [("desktop", 55), ("mobile", 38), ("tablet", 7)]
BROWSERS = [("Chrome", 50), ("Safari", 25), ("Firefox", 12), ("Edge", 9), ("Opera", 4)]
COUNTRIES = ["US", "GB", "DE", "FR", "IN", "BR", "CA", "JP", "AU", "NL"]

# Share of sessions that end with a conversion event
CONVERSION_RATE = 0.08


def _weighted(choices: list[tuple[str, int]]) -> str:
    names = [c[0] for c in choices]
    weights = [c[1] for c in choices]
    return random.choices(names, weights=weights, k=1)[0]


def generate_events(count: int, days: int, now: datetime | None = None) -> list[dict]:
    """Generate roughly ``count`` events spread over the last ``days`` days.

    Events are produced session by session so a session's page views share a
    visitor, device, browser and country, and are a few minutes apart.
    """
    now = now or datetime.now(timezone.utc)
    start = now - timedelta(days=days)

    num_visitors = max(count // 15, 10)
    visitors = [
        {
            "visitor_id": f"visitor_{i:05d}",
            "device": _weighted(DEVICES),
            "browser": _weighted(BROWSERS),
            "country": random.choice(COUNTRIES),
        }
        for i in range(num_visitors)
    ]

    events: list[dict] = []
    session_no = 0
    while len(events) < count:
        visitor = random.choice(visitors)
        session_id = f"sess_{session_no:06d}"
        session_no += 1
        ts = start + timedelta(seconds=random.randint(0, days * 86400))
        referrer = random.choice(REFERRERS) or None

        # One in three sessions bounces after a single page
        pages = 1 if random.random() < 0.33 else random.randint(2, 6)
        for n in range(pages):
            if len(events) >= count:
                break
            events.append(
                {
                    "event_type": "page_view",
                    "session_id": session_id,
                    "page_url": f"https://example.com{random.choice(PAGES)}",
                    "referrer": referrer if n == 0 else None,
                    "created_at": ts.isoformat(),
                    **visitor,
                }
            )
            ts += timedelta(seconds=random.randint(10, 300))

        if len(events) < count and random.random() < CONVERSION_RATE:
            events.append(
                {
                    "event_type": "conversion",
                    "session_id": session_id,
                    "created_at": ts.isoformat(),
                    "properties": {"plan": random.choice(["starter", "pro", "business"])},
                    **visitor,
                }
            )

    return events


def main():
    parser = argparse.ArgumentParser(description="Seed tracking events")
    parser.add_argument("--api-key", required=True, help="Project API key")
    parser.add_argument("--url", default="http://localhost:8000", help="API base URL")
    parser.add_argument("--count", type=int, default=1000, help="Number of events")
    parser.add_argument("--days", type=int, default=60, help="Days of history")
    args = parser.parse_args()

    print(f"Generating {args.count} events over {args.days} days...")
    events = generate_events(args.count, args.days)
    events.sort(key=lambda e: e["created_at"])

    print(f"Sending to {args.url}...")
    total_sent = 0
    with httpx.Client(timeout=30) as client:
        for event in events:
            resp = client.post(
                f"{args.url}/api/v1/track",
                json=event,
                headers={"X-API-Key": args.api_key},
            )
            if resp.status_code != 201:
                print(f"  Error: {resp.status_code} - {resp.text}", file=sys.stderr)
                sys.exit(1)
            total_sent += 1
            if total_sent % 100 == 0:
                print(f"  Sent {total_sent}/{len(events)} events")

    print(f"Done! Seeded {total_sent} events.")


if __name__ == "__main__":
    main()
