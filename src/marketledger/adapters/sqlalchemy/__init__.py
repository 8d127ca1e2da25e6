"""SQLAlchemy adapter package for marketledger."""

from __future__ import annotations

from .codec import dump_entity, load_entity, serialize_key
from .mappings import UTCDateTime, create_all_tables, entity_record_table, mapper_registry
from .repositories import SqlAlchemyEntityStore
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyEntityStore",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "UTCDateTime",
    "configured_engine",
    "create_all_tables",
    "dump_entity",
    "entity_record_table",
    "is_started",
    "load_entity",
    "mapper_registry",
    "serialize_key",
    "shutdown",
    "startup",
]
