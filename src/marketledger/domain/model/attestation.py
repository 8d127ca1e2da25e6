"""Sale attestations and the reviews they gate."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from marketledger.domain.model.base import TrackedEntity
from marketledger.domain.model.enums import EntityType, ReviewType
from marketledger.domain.model.primitives import UNLINKED, Address, LinkTarget, TxHash


@dataclass(eq=False, kw_only=True)
class SaleAttestation(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.SALE_ATTESTATION

    uid: str
    sale_transaction_hash: TxHash
    buyer: Address
    seller: Address
    escrow_contract: Address
    storefront_contract: Address
    target: LinkTarget = UNLINKED
    # best-effort storefront reference when the target could not be resolved
    storefront: Address | None = None
    timestamp: int = 0
    is_latest: bool = False

    @property
    def key(self) -> str:
        return self.uid


@dataclass(eq=False, kw_only=True)
class Review(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.REVIEW

    uid: str
    sale_attestation: str
    reviewer: Address
    recipient: Address
    review_type: ReviewType
    storefront: Address | None = None
    overall_rating: int = 0
    quality_rating: int = 0
    communication_rating: int = 0
    delivery_rating: int = 0
    packaging_rating: int = 0
    as_described: bool = False
    review_text: str = ""

    @property
    def key(self) -> str:
        return self.uid
