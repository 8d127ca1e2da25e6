"""Escrow entities: the escrow record itself and the activity it accumulates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from marketledger.domain.model.base import TrackedEntity
from marketledger.domain.model.enums import (
    EntityType,
    EscrowActivityKind,
    EscrowVariant,
    SourceType,
)
from marketledger.domain.model.primitives import (
    UNLINKED,
    Address,
    AuctionKey,
    AuctionLink,
    EventKey,
    LinkTarget,
    OrderLink,
    TxHash,
    Unlinked,
)


@dataclass(eq=False, kw_only=True)
class OrderEscrow(TrackedEntity):
    """Holds sale proceeds for exactly one order or one auction.

    ``link`` starts out unlinked; the escrow never learns its counterpart from its own
    events, so links are filled in by cross-referencing orders, auctions and attestations.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ORDER_ESCROW

    address: Address
    payee: Address
    source_address: Address
    source_type: SourceType = SourceType.STOREFRONT
    source_type_defaulted: bool = False
    arbiter: Address
    variant: EscrowVariant = EscrowVariant.SIMPLE

    payer: Address | None = None
    settle_deadline: int = 0
    is_disputed: bool = False
    is_refunded: bool = False
    is_settled: bool = False
    is_escaped: bool = False
    escape_address: Address | None = None

    affiliate: Address | None = None
    affiliate_share: int = 0
    affiliate_confirmed: bool = False

    link: LinkTarget = UNLINKED
    pending_arbiter_change: EventKey | None = None

    @property
    def key(self) -> Address:
        return self.address

    @property
    def is_linked(self) -> bool:
        return not isinstance(self.link, Unlinked)

    @property
    def order(self) -> TxHash | None:
        return self.link.order if isinstance(self.link, OrderLink) else None

    @property
    def auction(self) -> AuctionKey | None:
        return self.link.auction if isinstance(self.link, AuctionLink) else None


@dataclass(eq=False, kw_only=True)
class OrderPayment(TrackedEntity):
    """A PayerSet observation, keyed by the transaction that emitted it."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ORDER_PAYMENT

    transaction_hash: TxHash
    escrow: Address
    payer: Address
    settle_deadline: int = 0
    order: TxHash | None = None
    seaport_order: TxHash | None = None

    @property
    def key(self) -> TxHash:
        return self.transaction_hash


@dataclass(eq=False, kw_only=True)
class EscrowActivity(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ESCROW_ACTIVITY

    transaction_hash: TxHash
    log_index: int
    escrow: Address
    kind: EscrowActivityKind
    to: Address | None = None
    token: Address | None = None
    amount: int = 0
    actor: Address | None = None
    settled: bool | None = None
    escape_address: Address | None = None
    affiliate: Address | None = None
    affiliate_amount: int = 0

    @property
    def key(self) -> EventKey:
        return EventKey(self.transaction_hash, self.log_index)


@dataclass(eq=False, kw_only=True)
class ArbiterChange(TrackedEntity):
    """Audit record of an arbiter proposal or approval."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ARBITER_CHANGE

    transaction_hash: TxHash
    log_index: int
    escrow: Address
    old_arbiter: Address
    proposed_arbiter: Address | None = None
    new_arbiter: Address | None = None
    approver: Address | None = None
    approved: bool = False
    approved_by_change: EventKey | None = None

    @property
    def key(self) -> EventKey:
        return EventKey(self.transaction_hash, self.log_index)
