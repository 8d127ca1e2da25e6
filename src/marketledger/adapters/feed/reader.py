"""Ordered reader for JSON-lines event feeds."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from .schema import EventRecord
from .translator import to_chain_event

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from marketledger.domain.events import ChainEvent

log = getLogger(__name__)


class FeedError(ValueError):
    """Raised in strict mode for a line that is not a valid event record."""

    def __init__(self, message: str, *, line_number: int) -> None:
        super().__init__(f"line {line_number}: {message}")
        self.line_number = line_number


class JsonLinesFeed:
    """Yields feed events in file order.

    Blank lines are ignored. Lines that fail to parse or validate are skipped and
    counted, or raise :class:`FeedError` when ``strict`` is set.
    """

    def __init__(self, path: Path, *, strict: bool = False) -> None:
        self.path = path
        self.strict = strict
        self.skipped = 0

    def __iter__(self) -> Iterator[ChainEvent]:
        with self.path.open(encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                event = self._parse(line, line_number)
                if event is not None:
                    yield event

    def _parse(self, line: str, line_number: int) -> ChainEvent | None:
        try:
            record = EventRecord.model_validate(json.loads(line))
        except (json.JSONDecodeError, ValidationError) as exc:
            if self.strict:
                raise FeedError(str(exc), line_number=line_number) from exc
            self.skipped += 1
            log.warning("Skipping invalid feed line %s in %s: %s", line_number, self.path, exc)
            return None
        return to_chain_event(record)
