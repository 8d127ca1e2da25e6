"""
Base building blocks:
entity_type contract, typed keys, creation/update stamps.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Protocol

from marketledger.domain.model.enums import EntityType
from marketledger.domain.model.primitives import EntityKey


class HasEntityType(Protocol):
    """Structural contract for typed store dispatch."""

    ENTITY_TYPE: ClassVar[EntityType]

    @property
    def entity_type(self) -> EntityType: ...


@dataclass(eq=False, kw_only=True)
class Entity:
    """A record identified by an explicit typed key inside its entity-type keyspace."""

    # class-level discriminator; subclasses must override
    ENTITY_TYPE: ClassVar[EntityType]

    @property
    def entity_type(self) -> EntityType:
        return self.ENTITY_TYPE

    @property
    def key(self) -> EntityKey:
        raise NotImplementedError(f"{type(self).__name__} does not define a key")


@dataclass(eq=False, kw_only=True)
class TrackedEntity(Entity):
    """Entity carrying the block stamps of its creation and its most recent mutation."""

    created_at: int = 0
    created_at_block: int = 0
    creation_tx: str = ""
    last_updated_at: int = 0
    last_updated_tx: str = ""

    def stamp_created(self, *, timestamp: int, block_number: int, transaction_hash: str) -> None:
        self.created_at = timestamp
        self.created_at_block = block_number
        self.creation_tx = transaction_hash
        self.touch(timestamp=timestamp, transaction_hash=transaction_hash)

    def touch(self, *, timestamp: int, transaction_hash: str) -> None:
        self.last_updated_at = timestamp
        self.last_updated_tx = transaction_hash
