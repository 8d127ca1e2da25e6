"""Dispatch of feed events to the handler owning ``(contract family, event kind)``."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from marketledger.domain.events import MalformedEventError
from marketledger.domain.indexing.attestations import AttestationLinker
from marketledger.domain.indexing.auctions import AuctionStateMachine
from marketledger.domain.indexing.curation import CurationTracker
from marketledger.domain.indexing.escrows import EscrowSettlementTracker
from marketledger.domain.indexing.ledger import ProcessedEventLedger
from marketledger.domain.indexing.links import CrossReferenceResolver
from marketledger.domain.indexing.seaport import SeaportTracker
from marketledger.domain.indexing.storefronts import StorefrontTracker
from marketledger.domain.indexing.tokens import AuctionItemTracker
from marketledger.domain.model import ContractFamily, EventKind

if TYPE_CHECKING:
    from marketledger.domain.events import ChainEvent
    from marketledger.domain.ports import ContractReader, EntityStore

log = getLogger(__name__)

type Handler = Callable[[ChainEvent], None]
type HandlerTable = Mapping[tuple[ContractFamily, EventKind], Handler]


class DispatchOutcome(StrEnum):
    HANDLED = "handled"
    DUPLICATE = "duplicate"
    UNROUTED = "unrouted"
    MALFORMED = "malformed"


_ESCROW_FAMILIES: Final = (ContractFamily.ESCROW, ContractFamily.AFFILIATE_ESCROW)
_STOREFRONT_FAMILIES: Final = (
    ContractFamily.STOREFRONT,
    ContractFamily.STOREFRONT_V2,
    ContractFamily.AFFILIATE_STOREFRONT,
)

# Family assumed for a source address that no factory event has registered.
DEFAULT_FAMILY_BY_KIND: Final[dict[EventKind, ContractFamily]] = {
    EventKind.AUCTION_CREATED: ContractFamily.AUCTION_HOUSE,
    EventKind.BID_CREATED: ContractFamily.AUCTION_HOUSE,
    EventKind.AUCTION_ENCRYPTED_MESSAGE: ContractFamily.AUCTION_HOUSE,
    EventKind.PREMIUM_PAID: ContractFamily.AUCTION_HOUSE,
    EventKind.AUCTION_EXTENDED: ContractFamily.AUCTION_HOUSE,
    EventKind.AUCTION_ENDED: ContractFamily.AUCTION_HOUSE,
    EventKind.AUCTION_CANCELLED: ContractFamily.AUCTION_HOUSE,
    EventKind.AUCTION_HOUSE_METADATA_UPDATED: ContractFamily.AUCTION_HOUSE,
    EventKind.SETTLEMENT_DEADLINE_UPDATED: ContractFamily.AUCTION_HOUSE,
    EventKind.PAYER_SET: ContractFamily.ESCROW,
    EventKind.SETTLED: ContractFamily.ESCROW,
    EventKind.REFUNDED: ContractFamily.ESCROW,
    EventKind.DISPUTED: ContractFamily.ESCROW,
    EventKind.DISPUTE_REMOVED: ContractFamily.ESCROW,
    EventKind.DISPUTE_RESOLVED: ContractFamily.ESCROW,
    EventKind.ESCAPE_ADDRESS_SET: ContractFamily.ESCROW,
    EventKind.ESCAPED: ContractFamily.ESCROW,
    EventKind.ARBITER_CHANGE_PROPOSED: ContractFamily.ESCROW,
    EventKind.ARBITER_CHANGE_APPROVED: ContractFamily.ESCROW,
    EventKind.STOREFRONT_ORDER_FULFILLED: ContractFamily.STOREFRONT,
    EventKind.LISTING_ADDED: ContractFamily.STOREFRONT,
    EventKind.LISTING_UPDATED: ContractFamily.STOREFRONT,
    EventKind.LISTING_REMOVED: ContractFamily.STOREFRONT,
    EventKind.READY_STATE_CHANGED: ContractFamily.STOREFRONT,
    EventKind.SETTLE_DEADLINE_UPDATED: ContractFamily.STOREFRONT,
    EventKind.ERC1155_TOKEN_ADDRESS_CHANGED: ContractFamily.STOREFRONT,
    EventKind.TRANSFER: ContractFamily.AUCTION_ITEM,
    EventKind.TOKEN_METADATA_UPDATED: ContractFamily.AUCTION_ITEM,
    EventKind.CONTRACT_URI_UPDATED: ContractFamily.AUCTION_ITEM,
    EventKind.OWNERSHIP_CHANGED: ContractFamily.AUCTION_ITEM,
    EventKind.AUCTION_HOUSE_CREATED: ContractFamily.AUCTION_HOUSE_FACTORY,
    EventKind.ESCROW_CREATED: ContractFamily.ESCROW_FACTORY,
    EventKind.AFFILIATE_ESCROW_CREATED: ContractFamily.AFFILIATE_ESCROW_FACTORY,
    EventKind.STOREFRONT_CREATED: ContractFamily.STOREFRONT_FACTORY,
    EventKind.AUCTION_ITEM_CREATED: ContractFamily.AUCTION_ITEM_FACTORY,
    EventKind.SALE_ATTESTED: ContractFamily.ATTESTATION,
    EventKind.REVIEW_SUBMITTED: ContractFamily.ATTESTATION,
    EventKind.ORDER_FULFILLED: ContractFamily.SEAPORT,
    EventKind.CURATION_CREATED: ContractFamily.CURATION_STOREFRONT,
    EventKind.CURATOR_ADDED: ContractFamily.CURATION_STOREFRONT,
    EventKind.CURATOR_REMOVED: ContractFamily.CURATION_STOREFRONT,
    EventKind.LISTING_CURATED: ContractFamily.CURATION_STOREFRONT,
    EventKind.PAYMENT_ADDRESS_UPDATED: ContractFamily.CURATION_STOREFRONT,
    EventKind.METADATA_UPDATED: ContractFamily.CURATION_STOREFRONT,
}


def build_handler_table(
    *,
    auctions: AuctionStateMachine,
    escrows: EscrowSettlementTracker,
    storefronts: StorefrontTracker,
    attestations: AttestationLinker,
    tokens: AuctionItemTracker,
    seaport: SeaportTracker,
    curation: CurationTracker,
) -> dict[tuple[ContractFamily, EventKind], Handler]:
    table: dict[tuple[ContractFamily, EventKind], Handler] = {
        (ContractFamily.AUCTION_HOUSE_FACTORY, EventKind.AUCTION_HOUSE_CREATED): (
            auctions.on_auction_house_created
        ),
        (ContractFamily.ESCROW_FACTORY, EventKind.ESCROW_CREATED): escrows.on_escrow_created,
        (ContractFamily.AFFILIATE_ESCROW_FACTORY, EventKind.AFFILIATE_ESCROW_CREATED): (
            escrows.on_affiliate_escrow_created
        ),
        (ContractFamily.STOREFRONT_FACTORY, EventKind.STOREFRONT_CREATED): (
            storefronts.on_storefront_created
        ),
        (ContractFamily.STOREFRONT_FACTORY_V2, EventKind.STOREFRONT_CREATED): (
            storefronts.on_storefront_v2_created
        ),
        (ContractFamily.AFFILIATE_STOREFRONT_FACTORY, EventKind.STOREFRONT_CREATED): (
            storefronts.on_affiliate_storefront_created
        ),
        (ContractFamily.AUCTION_ITEM_FACTORY, EventKind.AUCTION_ITEM_CREATED): (
            tokens.on_collection_created
        ),
        (ContractFamily.ATTESTATION, EventKind.SALE_ATTESTED): attestations.on_sale_attested,
        (ContractFamily.ATTESTATION, EventKind.REVIEW_SUBMITTED): (
            attestations.on_review_submitted
        ),
        (ContractFamily.SEAPORT, EventKind.ORDER_FULFILLED): seaport.on_order_fulfilled,
    }

    house: dict[EventKind, Handler] = {
        EventKind.AUCTION_CREATED: auctions.on_auction_created,
        EventKind.BID_CREATED: auctions.on_bid_created,
        EventKind.AUCTION_ENCRYPTED_MESSAGE: auctions.on_encrypted_message,
        EventKind.PREMIUM_PAID: auctions.on_premium_paid,
        EventKind.AUCTION_EXTENDED: auctions.on_auction_extended,
        EventKind.AUCTION_ENDED: auctions.on_auction_ended,
        EventKind.AUCTION_CANCELLED: auctions.on_auction_cancelled,
        EventKind.AUCTION_HOUSE_METADATA_UPDATED: auctions.on_auction_house_metadata_updated,
        EventKind.SETTLEMENT_DEADLINE_UPDATED: auctions.on_settlement_deadline_updated,
    }
    table.update({(ContractFamily.AUCTION_HOUSE, kind): h for kind, h in house.items()})

    escrow: dict[EventKind, Handler] = {
        EventKind.PAYER_SET: escrows.on_payer_set,
        EventKind.SETTLED: escrows.on_settled,
        EventKind.REFUNDED: escrows.on_refunded,
        EventKind.DISPUTED: escrows.on_disputed,
        EventKind.DISPUTE_REMOVED: escrows.on_dispute_removed,
        EventKind.DISPUTE_RESOLVED: escrows.on_dispute_resolved,
        EventKind.ESCAPE_ADDRESS_SET: escrows.on_escape_address_set,
        EventKind.ESCAPED: escrows.on_escaped,
        EventKind.ARBITER_CHANGE_PROPOSED: escrows.on_arbiter_change_proposed,
        EventKind.ARBITER_CHANGE_APPROVED: escrows.on_arbiter_change_approved,
    }
    for family in _ESCROW_FAMILIES:
        table.update({(family, kind): h for kind, h in escrow.items()})

    storefront: dict[EventKind, Handler] = {
        EventKind.STOREFRONT_ORDER_FULFILLED: storefronts.on_order_fulfilled,
        EventKind.LISTING_ADDED: storefronts.on_listing_added,
        EventKind.LISTING_UPDATED: storefronts.on_listing_updated,
        EventKind.LISTING_REMOVED: storefronts.on_listing_removed,
        EventKind.READY_STATE_CHANGED: storefronts.on_ready_state_changed,
        EventKind.SETTLE_DEADLINE_UPDATED: storefronts.on_settle_deadline_updated,
        EventKind.ERC1155_TOKEN_ADDRESS_CHANGED: storefronts.on_token_address_changed,
    }
    for family in _STOREFRONT_FAMILIES:
        table.update({(family, kind): h for kind, h in storefront.items()})

    item: dict[EventKind, Handler] = {
        EventKind.TRANSFER: tokens.on_transfer,
        EventKind.TOKEN_METADATA_UPDATED: tokens.on_token_metadata_updated,
        EventKind.CONTRACT_URI_UPDATED: tokens.on_contract_uri_updated,
        EventKind.OWNERSHIP_CHANGED: tokens.on_ownership_changed,
    }
    table.update({(ContractFamily.AUCTION_ITEM, kind): h for kind, h in item.items()})

    curated: dict[EventKind, Handler] = {
        EventKind.CURATION_CREATED: curation.on_curation_created,
        EventKind.CURATOR_ADDED: curation.on_curator_added,
        EventKind.CURATOR_REMOVED: curation.on_curator_removed,
        EventKind.LISTING_CURATED: curation.on_listing_curated,
        EventKind.LISTING_UPDATED: curation.on_listing_updated,
        EventKind.PAYMENT_ADDRESS_UPDATED: curation.on_payment_address_updated,
        EventKind.METADATA_UPDATED: curation.on_metadata_updated,
        EventKind.TRANSFER: curation.on_transfer,
    }
    table.update({(ContractFamily.CURATION_STOREFRONT, kind): h for kind, h in curated.items()})
    return table


class EventRouter:
    """Routes one event at a time, in arrival order, to exactly one handler.

    Family resolution prefers the family carried on the event, then the family a factory
    registered for the source address, then the default family of the event kind.
    Events already in the processed-event ledger are skipped when deduplication is on.
    """

    def __init__(
        self,
        store: EntityStore,
        handlers: HandlerTable,
        *,
        resolver: CrossReferenceResolver | None = None,
        deduplicate: bool = True,
    ) -> None:
        self.store = store
        self.handlers = handlers
        self.resolver = resolver or CrossReferenceResolver(store)
        self.ledger = ProcessedEventLedger(store)
        self.deduplicate = deduplicate

    @classmethod
    def build(
        cls,
        store: EntityStore,
        reader: ContractReader,
        *,
        deduplicate: bool = True,
    ) -> EventRouter:
        """Wire the standard components around one store and one contract reader."""

        resolver = CrossReferenceResolver(store)
        handlers = build_handler_table(
            auctions=AuctionStateMachine(store, reader, resolver),
            escrows=EscrowSettlementTracker(store, resolver),
            storefronts=StorefrontTracker(store, reader, resolver),
            attestations=AttestationLinker(store, resolver),
            tokens=AuctionItemTracker(store, reader, resolver),
            seaport=SeaportTracker(store, reader),
            curation=CurationTracker(store, resolver),
        )
        return cls(store, handlers, resolver=resolver, deduplicate=deduplicate)

    def resolve_family(self, event: ChainEvent) -> ContractFamily | None:
        if event.family is not None:
            return event.family
        registered = self.resolver.registered_family(event.address)
        if registered is not None:
            return registered
        return DEFAULT_FAMILY_BY_KIND.get(event.kind)

    def dispatch(self, event: ChainEvent) -> DispatchOutcome:
        if self.deduplicate and self.ledger.seen(event):
            log.debug(
                "Skipping redelivered %s at %s:%s",
                event.kind,
                event.transaction_hash,
                event.log_index,
            )
            return DispatchOutcome.DUPLICATE

        family = self.resolve_family(event)
        handler = self.handlers.get((family, event.kind)) if family is not None else None
        if handler is None:
            log.warning(
                "No handler for %s from %s (family %s)", event.kind, event.address, family
            )
            return DispatchOutcome.UNROUTED

        try:
            handler(event)
        except MalformedEventError as exc:
            log.warning("Malformed event skipped: %s", exc)
            return DispatchOutcome.MALFORMED

        self.ledger.record(event)
        return DispatchOutcome.HANDLED
