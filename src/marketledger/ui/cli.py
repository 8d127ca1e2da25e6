# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from marketledger.adapters.sqlalchemy import dump_entity
from marketledger.app import replay_feed, show_entity
from marketledger.config import configure_logging
from marketledger.domain.model import EntityType, IndexKey, IndexName

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from marketledger.domain.model import EntityKey

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Index marketplace contract events")
    parser.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to DATABASE_URI or the data directory)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    replay = subparsers.add_parser("replay", help="Replay a JSON-lines event feed")
    replay.add_argument("feed", type=Path, help="Path to the JSON-lines feed file")
    replay.add_argument(
        "--rpc-url",
        type=str,
        help="JSON-RPC endpoint for contract reads (defaults to MARKETLEDGER_RPC_URL)",
    )
    replay.add_argument(
        "--offline",
        action="store_true",
        help="Skip contract reads entirely and use defaults",
    )
    replay.add_argument(
        "--no-dedupe",
        action="store_true",
        help="Process redelivered events again instead of skipping them",
    )
    replay.add_argument(
        "--strict",
        action="store_true",
        help="Abort on the first invalid feed line instead of skipping it",
    )

    show = subparsers.add_parser("show", help="Print one stored entity as JSON")
    show.add_argument(
        "entity_type",
        type=EntityType,
        choices=list(EntityType),
        metavar="ENTITY_TYPE",
        help=f"One of: {', '.join(EntityType)}",
    )
    show.add_argument("key", nargs="+", help="Key parts, e.g. HOUSE AUCTION_ID")

    return parser.parse_args(list(argv))


def _parse_key_part(value: str) -> str | int:
    stripped = value.strip()
    return int(stripped) if stripped.isdigit() else stripped.lower()


def _build_key(entity_type: EntityType, parts: Sequence[str]) -> EntityKey:
    """Turn CLI key parts into the typed key of ``entity_type``."""

    if entity_type == EntityType.INDEX_ENTRY:
        if len(parts) < 2:
            raise ValueError("An index entry key needs an index name and lookup parts")
        return IndexKey(IndexName(parts[0]), tuple(_parse_key_part(part) for part in parts[1:]))
    values = tuple(_parse_key_part(part) for part in parts)
    return values[0] if len(values) == 1 else values


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        key = None
        if parsed_args.command == "show":
            key = _build_key(parsed_args.entity_type, parsed_args.key)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "replay":
            if not parsed_args.feed.is_file():
                raise ValueError(f"Feed file not found: {parsed_args.feed}")  # noqa: TRY301
            result = replay_feed(
                parsed_args.feed,
                rpc_url=parsed_args.rpc_url,
                database_uri=parsed_args.database_uri,
                deduplicate=False if parsed_args.no_dedupe else None,
                offline=parsed_args.offline,
                strict=parsed_args.strict,
            )
            if result.failed:
                log.warning("%s events failed; see the log above for tracebacks", result.failed)
        elif parsed_args.command == "show":
            entity = show_entity(
                parsed_args.entity_type,
                key,
                database_uri=parsed_args.database_uri,
            )
            if entity is None:
                log.error("No %s stored under %s", parsed_args.entity_type, key)
                sys.exit(1)
            print(dump_entity(entity))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
