# scripts/seed_sos_requests.py
"""
Generate random SOS requests around a town center and either dump them to
JSON or push them into DynamoDB with the same add_sos_request() helper the
API uses.

Usage:
  python scripts/seed_sos_requests.py --count 60 --out sos_seed.json
  python scripts/seed_sos_requests.py --count 60 --upload [--dry-run]

Env vars (same as floodwatch/db/dynamo.py):
  AWS_REGION=ap-southeast-1
  SOS_TABLE=SosRequests
"""
import sys
import json
import time
import random
import argparse

from floodwatch.models.sos import ANONYMOUS_NAME, SOSRequestIn

HELP_TYPES = ["food", "medical", "evacuation", "boat"]
SEVERITIES = ["low", "medium", "high"]

# Hat Yai, Songkhla
DEFAULT_CENTER = (7.0086, 100.4747)


def random_request(center_lat: float, center_lng: float, spread: float) -> dict:
    lat = center_lat + random.uniform(-spread, spread)
    lng = center_lng + random.uniform(-spread, spread)
    return {
        "name": random.choice(["", f"Resident {random.randint(1, 999)}"]),
        "phone": f"08{random.randint(0, 9)}-{random.randint(100, 999)}-{random.randint(1000, 9999)}",
        "help_type": random.choice(HELP_TYPES),
        "severity": random.choice(SEVERITIES),
        "description": None,
        "latitude": round(lat, 6),
        "longitude": round(lng, 6),
        "has_children": random.random() < 0.3,
        "has_elderly": random.random() < 0.3,
        "has_disabled": random.random() < 0.1,
        "has_pregnant": random.random() < 0.05,
        "people_count": random.randint(1, 8),
    }


def main():
    parser = argparse.ArgumentParser(description="Seed random SOS requests.")
    parser.add_argument("--count", "-n", type=int, default=50, help="How many requests to generate.")
    parser.add_argument("--lat", type=float, default=DEFAULT_CENTER[0], help="Center latitude.")
    parser.add_argument("--lng", type=float, default=DEFAULT_CENTER[1], help="Center longitude.")
    parser.add_argument("--spread", type=float, default=0.03,
                        help="Max offset in degrees from the center.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable data.")
    parser.add_argument("--out", "-o", default="sos_seed.json", help="JSON output path.")
    parser.add_argument("--upload", action="store_true", help="Write into DynamoDB instead of JSON.")
    parser.add_argument("--dry-run", action="store_true",
                        help="Validate and print, but do not write anything.")
    parser.add_argument("--sleep", type=float, default=0.0,
                        help="Optional delay (seconds) between writes to be gentle.")
    args = parser.parse_args()

    if args.count < 1:
        print("Error: --count must be >= 1")
        sys.exit(1)
    if args.seed is not None:
        random.seed(args.seed)

    # validate through the same model the API uses
    records = [
        SOSRequestIn(**random_request(args.lat, args.lng, args.spread)).model_dump()
        for _ in range(args.count)
    ]

    if args.dry_run:
        for r in records[:5]:
            print(r)
        print(f"[dry-run] {len(records)} requests generated, nothing written.")
        return

    if not args.upload:
        with open(args.out, "w", encoding="utf-8") as f:
            json.dump(records, f, ensure_ascii=False, indent=2)
        print(f"Generated {len(records)} SOS requests → {args.out}")
        return

    from floodwatch.db.dynamo import add_sos_request

    ok = 0
    for r in records:
        if not (r.get("name") or "").strip():
            r["name"] = ANONYMOUS_NAME
        add_sos_request(r)
        ok += 1
        if args.sleep:
            time.sleep(args.sleep)
    print(f"Uploaded {ok} SOS requests.")


if __name__ == "__main__":
    main()
