"""CLI entry point for algolite."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    from algolite.config.settings import Settings
    from algolite.exceptions import ConfigurationError
    from algolite.observability.logging import setup_logging

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            return 2
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    # Apply CLI overrides
    if args.log_level:
        settings.observability.log_level = args.log_level
    setup_logging(settings.observability)

    from algolite.client.client import AlgoliaClient

    client = AlgoliaClient(settings)
    try:
        if args.command == "indexes":
            result = client.list_indexes()
        elif args.command == "search":
            result = client.search(args.index, args.query, **dict(args.param or []))
        elif args.command == "get":
            result = client.get_object(args.index, args.object_id)
        else:
            failure = client.wait_task(args.index, args.task_id, args.interval)
            if failure is None:
                print(json.dumps({"status": "published"}))
                return 0
            result = failure
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return _emit(result)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="algolite",
        description="algolite — Algolia search API client",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"algolite {_get_version()}",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("indexes", help="List indexes")

    search = sub.add_parser("search", help="Search an index")
    search.add_argument("index")
    search.add_argument("query")
    search.add_argument(
        "--param",
        "-p",
        type=_key_value,
        action="append",
        help="Extra search parameter as key=value (repeatable)",
    )

    get = sub.add_parser("get", help="Get an object by objectID")
    get.add_argument("index")
    get.add_argument("object_id")

    wait = sub.add_parser("wait", help="Wait until a task is published")
    wait.add_argument("index")
    wait.add_argument("task_id")
    wait.add_argument("--interval", type=int, default=None, help="Poll interval in ms")
    return parser


def _key_value(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    return key, value


def _emit(result: Any) -> int:
    if result.ok:
        print(json.dumps(result.body, indent=2, ensure_ascii=False))
        return 0
    print(json.dumps(result.model_dump(), ensure_ascii=False), file=sys.stderr)
    return 1


def _get_version() -> str:
    """Get the package version."""
    try:
        from algolite import __version__

        return __version__
    except ImportError:
        return "unknown"


if __name__ == "__main__":
    sys.exit(main())
