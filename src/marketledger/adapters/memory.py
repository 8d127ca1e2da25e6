"""In-process entity store and unit of work, used for tests and dry runs."""

from __future__ import annotations

import copy
from logging import getLogger
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from marketledger.domain.model import Entity, EntityKey, EntityType

log = getLogger(__name__)

type _Slot = tuple[EntityType, EntityKey]


class InMemoryEntityStore:
    """Dictionary-backed store with commit/rollback of pending writes.

    Entities are copied on the way in and out so that a handler mutating a loaded
    entity does not change stored state until it saves.
    """

    def __init__(self) -> None:
        self._committed: dict[_Slot, Entity] = {}
        self._pending: dict[_Slot, Entity] = {}

    def load[TEntity: Entity](self, entity_cls: type[TEntity], key: EntityKey) -> TEntity | None:
        slot = (entity_cls.ENTITY_TYPE, key)
        entity = self._pending.get(slot)
        if entity is None:
            entity = self._committed.get(slot)
        if entity is None:
            return None
        if not isinstance(entity, entity_cls):
            raise TypeError(
                f"Stored {slot} is a {type(entity).__name__}, not {entity_cls.__name__}"
            )
        return copy.deepcopy(entity)

    def save(self, entity: Entity) -> None:
        self._pending[(entity.entity_type, entity.key)] = copy.deepcopy(entity)

    def commit(self) -> None:
        self._committed.update(self._pending)
        self._pending.clear()

    def rollback(self) -> None:
        if self._pending:
            log.debug("Discarding %s pending writes", len(self._pending))
        self._pending.clear()

    def entities[TEntity: Entity](self, entity_cls: type[TEntity]) -> Iterator[TEntity]:
        """Committed entities of one type, in insertion order."""

        for (entity_type, _key), entity in self._committed.items():
            if entity_type == entity_cls.ENTITY_TYPE and isinstance(entity, entity_cls):
                yield copy.deepcopy(entity)

    def count(self, entity_type: EntityType) -> int:
        return sum(1 for slot_type, _key in self._committed if slot_type == entity_type)


class InMemoryUnitOfWork:
    """Unit of work over a shared :class:`InMemoryEntityStore`."""

    def __init__(self, store: InMemoryEntityStore | None = None) -> None:
        self._store = store or InMemoryEntityStore()

    @property
    def store(self) -> InMemoryEntityStore:
        return self._store

    def __enter__(self) -> InMemoryUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        # uncommitted writes never survive the scope
        self.rollback()
        return False

    def commit(self) -> None:
        self._store.commit()

    def rollback(self) -> None:
        self._store.rollback()
