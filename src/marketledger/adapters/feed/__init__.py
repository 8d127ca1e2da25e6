"""Public interface for the JSON-lines feed adapter."""

from __future__ import annotations

from .reader import FeedError, JsonLinesFeed
from .schema import EventRecord
from .translator import to_chain_event

__all__ = [
    "EventRecord",
    "FeedError",
    "JsonLinesFeed",
    "to_chain_event",
]
