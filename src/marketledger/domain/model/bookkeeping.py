"""Records the indexer keeps about itself: contract families, secondary indexes, delivery."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from marketledger.domain.model.base import Entity
from marketledger.domain.model.enums import ContractFamily, EntityType, EventKind, IndexName
from marketledger.domain.model.primitives import Address, EventKey, IndexKey, TxHash


@dataclass(eq=False, kw_only=True)
class ContractRegistration(Entity):
    """Family of a contract instance announced by a factory event."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.CONTRACT_REGISTRATION

    address: Address
    family: ContractFamily
    registered_by: Address
    registered_at_block: int = 0

    @property
    def key(self) -> Address:
        return self.address


@dataclass(eq=False, kw_only=True)
class IndexEntry(Entity):
    """One row of a secondary index: ``lookup`` within ``index`` resolves to ``target``."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.INDEX_ENTRY

    index: IndexName
    lookup: tuple[str | int, ...]
    target: tuple[str | int, ...]

    @property
    def key(self) -> IndexKey:
        return IndexKey(self.index, self.lookup)


@dataclass(eq=False, kw_only=True)
class ProcessedEvent(Entity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.PROCESSED_EVENT

    transaction_hash: TxHash
    log_index: int
    kind: EventKind
    address: Address
    block_number: int = 0

    @property
    def key(self) -> EventKey:
        return EventKey(self.transaction_hash, self.log_index)
