"""Lightweight REST client for the teamfeed API."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the teamfeed REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("--category", action="append", default=[], help="Only print these categories")
    parser.add_argument("--output", type=Path, help="Save the full JSON response to this path")
    parser.add_argument("--timeout", type=float, default=30.0, help="Request timeout in seconds")
    parser.add_argument("--health", action="store_true", help="Check service health and exit")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url, timeout=args.timeout) as client:
        if args.health:
            resp = client.get("/health")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return

        resp = client.get("/aggregate")
        resp.raise_for_status()
        payload = resp.json()

    fallback = resp.headers.get("X-Teamfeed-Fallback", "")
    print("Fallback categories:", fallback or "none")
    if args.output:
        args.output.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Response saved to {args.output}")
        return

    selected = {key: value for key, value in payload.items() if not args.category or key in args.category}
    print(json.dumps(selected, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
