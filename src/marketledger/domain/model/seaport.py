"""Seaport fulfilments and the storefront receipt tokens they hand out."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from marketledger.domain.model.base import TrackedEntity
from marketledger.domain.model.enums import EntityType
from marketledger.domain.model.primitives import Address, TokenKey, TxHash


@dataclass(frozen=True, slots=True)
class OfferItem:
    item_type: int
    token: Address
    identifier: int
    amount: int


@dataclass(frozen=True, slots=True)
class ConsiderationItem:
    item_type: int
    token: Address
    identifier: int
    amount: int
    recipient: Address


@dataclass(eq=False, kw_only=True)
class SeaportOrder(TrackedEntity):
    """An OrderFulfilled log, keyed by its transaction like the payment that funds it.

    ``storefront`` is set when the offerer is a known storefront offering its own receipt
    token; the receipt URIs are read from that token contract.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.SEAPORT_ORDER

    transaction_hash: TxHash
    order_hash: str
    offerer: Address
    zone: Address | None = None
    recipient: Address
    offer: list[OfferItem] = field(default_factory=list[OfferItem])
    consideration: list[ConsiderationItem] = field(default_factory=list[ConsiderationItem])

    storefront: Address | None = None
    erc1155_contract_uri: str | None = None
    erc1155_token_uri: str | None = None
    payment: TxHash | None = None

    @property
    def key(self) -> TxHash:
        return self.transaction_hash


@dataclass(eq=False, kw_only=True)
class ReceiptToken(TrackedEntity):
    """A storefront receipt ERC1155 id; its URI is read once, when first seen."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.RECEIPT_TOKEN

    contract: Address
    token_id: int
    uri: str | None = None

    @property
    def key(self) -> TokenKey:
        return TokenKey(self.contract, self.token_id)
