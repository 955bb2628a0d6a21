"""Command-line interface for running an aggregation or serving the API."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from teamfeed.config import load_config
from teamfeed.config_loader import ConfigError, ConfigProfile
from teamfeed.pipeline import aggregate


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Aggregate team roster, schedule, stats, standings and news")
    parser.add_argument("--config", type=Path, default=None, help="JSON configuration profile")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("aggregate", help="Fetch every category once and print the JSON result")
    run.add_argument("--output", type=Path, default=None, help="Write JSON to this path instead of stdout")
    run.add_argument("--indent", type=int, default=2, help="JSON indentation")
    run.add_argument(
        "--provenance",
        action="store_true",
        help="Print which categories were served live vs from fallback to stderr",
    )

    serve = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve.add_argument("--port", type=int, default=8000, help="Bind port")

    dump = subparsers.add_parser("dump-config", help="Write the effective configuration as a JSON profile")
    dump.add_argument("path", type=Path, help="Destination path")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc

    if args.command == "serve":
        import uvicorn

        from teamfeed.api import create_app

        uvicorn.run(create_app(config), host=args.host, port=args.port)
        return

    if args.command == "dump-config":
        ConfigProfile.from_config(config).save(args.path)
        print(f"Configuration saved to {args.path}")
        return

    result = asyncio.run(aggregate(config))
    text = json.dumps(result.to_payload(), indent=args.indent, ensure_ascii=False)
    if args.output:
        args.output.write_text(text + "\n", encoding="utf-8")
        print(f"Aggregate written to {args.output}")
    else:
        print(text)
    if args.provenance:
        logging.getLogger(__name__).info("Provenance: %s", json.dumps(result.provenance))


if __name__ == "__main__":
    main()
