"""Direct-sale entities: storefronts, their listings, and the orders they fulfil."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from marketledger.domain.model.base import TrackedEntity
from marketledger.domain.model.enums import EntityType, StorefrontVariant
from marketledger.domain.model.primitives import Address, ListingKey, TxHash


@dataclass(eq=False, kw_only=True)
class Storefront(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.STOREFRONT

    address: Address
    variant: StorefrontVariant = StorefrontVariant.SIMPLE
    owner: Address
    erc1155_token: Address
    escrow_factory: Address
    affiliate_verifier: Address | None = None
    is_affiliate_enabled: bool = False

    # Backfilled from the storefront contract
    arbiter: Address | None = None
    min_settle_time: int = 0
    settle_deadline: int = 0
    ready: bool = False
    seaport: Address | None = None
    contract_uri: str | None = None

    total_rating: int = 0
    review_count: int = 0

    @property
    def key(self) -> Address:
        return self.address

    @property
    def average_rating(self) -> float | None:
        if self.review_count == 0:
            return None
        return self.total_rating / self.review_count


@dataclass(eq=False, kw_only=True)
class TokenListing(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.TOKEN_LISTING

    storefront: Address
    token_id: int
    price: int
    payment_token: Address
    affiliate_fee: int = 0
    active: bool = True
    contract_uri: str | None = None
    token_uri: str | None = None

    @property
    def key(self) -> ListingKey:
        return ListingKey(self.storefront, self.token_id)


@dataclass(eq=False, kw_only=True)
class Order(TrackedEntity):
    """A storefront sale, keyed by the fulfilment transaction.

    Immutable apart from the link fields and the buyer, which a later attestation
    may correct.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ORDER

    transaction_hash: TxHash
    buyer: Address
    seller: Address
    storefront: Address
    token_id: int
    amount: int
    price: int = 0
    payment_token: Address | None = None
    escrow_contract: Address | None = None
    affiliate: Address | None = None
    affiliate_share: int = 0

    encrypted_data: str = ""
    ephemeral_public_key: str = ""
    iv: str = ""
    verification_hash: str = ""

    payment: TxHash | None = None
    latest_attestation: str | None = None
    original_buyer: Address | None = None

    @property
    def key(self) -> TxHash:
        return self.transaction_hash
