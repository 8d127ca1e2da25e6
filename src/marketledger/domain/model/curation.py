"""Curated collections of storefront listings, and the curators that maintain them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from marketledger.domain.model.base import TrackedEntity
from marketledger.domain.model.enums import CuratorActionKind, EntityType
from marketledger.domain.model.primitives import (
    Address,
    CurationKey,
    CurationListingKey,
    CuratorKey,
    EventKey,
    TxHash,
)


@dataclass(eq=False, kw_only=True)
class Curation(TrackedEntity):
    """One curation token of a curation storefront contract."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.CURATION

    contract: Address
    curation_id: int
    name: str = ""
    description: str = ""
    payment_address: Address | None = None
    owner: Address
    token_uri: str | None = None

    @property
    def key(self) -> CurationKey:
        return CurationKey(self.contract, self.curation_id)


@dataclass(eq=False, kw_only=True)
class Curator(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.CURATOR

    contract: Address
    curation_id: int
    curator: Address
    is_active: bool = True
    added_at: int = 0
    added_tx: TxHash | None = None
    removed_at: int | None = None
    removed_tx: TxHash | None = None

    @property
    def key(self) -> CuratorKey:
        return CuratorKey(self.contract, self.curation_id, self.curator)


@dataclass(eq=False, kw_only=True)
class CuratorAction(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.CURATOR_ACTION

    transaction_hash: TxHash
    log_index: int
    curation: CurationKey
    curator: Address
    action: CuratorActionKind

    @property
    def key(self) -> EventKey:
        return EventKey(self.transaction_hash, self.log_index)


@dataclass(eq=False, kw_only=True)
class CurationListing(TrackedEntity):
    """A storefront listing placed in a curation.

    Price, payment token and fee mirror the storefront's TokenListing at the time the
    listing was curated or last updated.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.CURATION_LISTING

    contract: Address
    curation_id: int
    listing_id: int
    storefront: Address
    token_id: int
    active: bool = True
    erc1155_token: Address | None = None
    price: int | None = None
    payment_token: Address | None = None
    affiliate_fee: int | None = None
    token_uri: str | None = None
    contract_uri: str | None = None

    @property
    def key(self) -> CurationListingKey:
        return CurationListingKey(self.contract, self.curation_id, self.listing_id)
