"""Ports for persisting derived marketplace entities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from marketledger.domain.model import Entity, EntityKey


@runtime_checkable
class EntityStore(Protocol):
    """Keyed load/save of typed records.

    Each entity type is its own keyspace. Saves are last-write-wins and there is no
    transaction spanning keys beyond what the owning unit of work provides.
    """

    def load[TEntity: Entity](
        self, entity_cls: type[TEntity], key: EntityKey
    ) -> TEntity | None: ...

    def save(self, entity: Entity) -> None: ...
