"""EntityStore implementation backed by a SQLAlchemy session."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, insert, select, update

from marketledger.adapters.sqlalchemy.codec import dump_entity, load_entity, serialize_key
from marketledger.adapters.sqlalchemy.mappings import entity_record_table

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.orm import Session

    from marketledger.domain.model import Entity, EntityKey, EntityType


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SqlAlchemyEntityStore:
    """Keyed records in ``entity_record``; a save replaces the whole payload."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def load[TEntity: Entity](self, entity_cls: type[TEntity], key: EntityKey) -> TEntity | None:
        stmt = (
            select(entity_record_table.c.payload)
            .where(entity_record_table.c.entity_type == entity_cls.ENTITY_TYPE)
            .where(entity_record_table.c.entity_key == serialize_key(key))
        )
        payload = self.session.execute(stmt).scalar_one_or_none()
        if payload is None:
            return None
        return load_entity(entity_cls, payload)

    def save(self, entity: Entity) -> None:
        key = serialize_key(entity.key)
        values = {"payload": dump_entity(entity), "updated_at": _utcnow()}
        exists = self.session.execute(
            select(entity_record_table.c.entity_key)
            .where(entity_record_table.c.entity_type == entity.entity_type)
            .where(entity_record_table.c.entity_key == key)
        ).scalar_one_or_none()
        if exists is None:
            self.session.execute(
                insert(entity_record_table).values(
                    entity_type=entity.entity_type, entity_key=key, **values
                )
            )
        else:
            self.session.execute(
                update(entity_record_table)
                .where(entity_record_table.c.entity_type == entity.entity_type)
                .where(entity_record_table.c.entity_key == key)
                .values(**values)
            )

    def entities[TEntity: Entity](self, entity_cls: type[TEntity]) -> Iterator[TEntity]:
        stmt = (
            select(entity_record_table.c.payload)
            .where(entity_record_table.c.entity_type == entity_cls.ENTITY_TYPE)
            .order_by(entity_record_table.c.entity_key)
        )
        for payload in self.session.execute(stmt).scalars():
            yield load_entity(entity_cls, payload)

    def count(self, entity_type: EntityType) -> int:
        stmt = (
            select(func.count())
            .select_from(entity_record_table)
            .where(entity_record_table.c.entity_type == entity_type)
        )
        return self.session.execute(stmt).scalar_one()
