"""Domain port definitions for adapters."""

from __future__ import annotations

from .contracts import ContractReader, ReadFailed, ReadOk, ReadResult
from .persistence import EntityStore
from .unit_of_work import UnitOfWork

__all__ = [
    "ContractReader",
    "EntityStore",
    "ReadFailed",
    "ReadOk",
    "ReadResult",
    "UnitOfWork",
]
