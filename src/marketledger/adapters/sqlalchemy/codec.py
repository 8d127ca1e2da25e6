"""JSON encoding of entities and their keys for the record table."""

from __future__ import annotations

import json
from functools import cache
from typing import TYPE_CHECKING

from pydantic import TypeAdapter

if TYPE_CHECKING:
    from marketledger.domain.model import Entity, EntityKey


@cache
def _adapter[TEntity: Entity](entity_cls: type[TEntity]) -> TypeAdapter[TEntity]:
    return TypeAdapter(entity_cls)


def serialize_key(key: EntityKey) -> str:
    """Stable text form of a key; composite keys become compact JSON arrays."""

    return json.dumps(key, default=str, separators=(",", ":"))


def dump_entity(entity: Entity) -> str:
    return _adapter(type(entity)).dump_json(entity).decode()


def load_entity[TEntity: Entity](entity_cls: type[TEntity], payload: str) -> TEntity:
    return _adapter(entity_cls).validate_json(payload)
