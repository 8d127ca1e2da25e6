"""Escrow lifecycle: creation, payment, settlement, refunds, disputes, escapes, arbiters."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from marketledger.domain.indexing.context import mark_created, mark_updated
from marketledger.domain.model import (
    ArbiterChange,
    AuctionStatus,
    ContractFamily,
    EscrowActivity,
    EscrowActivityKind,
    EscrowVariant,
    Order,
    OrderEscrow,
    OrderPayment,
    SeaportOrder,
)

if TYPE_CHECKING:
    from marketledger.domain.events import ChainEvent
    from marketledger.domain.indexing.links import CrossReferenceResolver
    from marketledger.domain.ports import EntityStore

log = getLogger(__name__)

_FAMILY_BY_VARIANT: dict[EscrowVariant, ContractFamily] = {
    EscrowVariant.SIMPLE: ContractFamily.ESCROW,
    EscrowVariant.AFFILIATE: ContractFamily.AFFILIATE_ESCROW,
}


class EscrowSettlementTracker:
    """Owns OrderEscrow, OrderPayment, EscrowActivity and ArbiterChange records.

    An escrow has no state machine beyond its flags; the contracts allow disputes to be
    raised and withdrawn repeatedly. Events for an escrow that was never created are
    logged and dropped.
    """

    def __init__(self, store: EntityStore, resolver: CrossReferenceResolver) -> None:
        self.store = store
        self.resolver = resolver

    def _load_escrow(self, event: ChainEvent, purpose: str) -> OrderEscrow | None:
        escrow = self.store.load(OrderEscrow, event.address)
        if escrow is None:
            log.warning("Escrow %s not found for %s", event.address, purpose)
        return escrow

    # Creation --------------------------------------------------------------------

    def on_escrow_created(self, event: ChainEvent) -> None:
        self._create(event, EscrowVariant.SIMPLE)

    def on_affiliate_escrow_created(self, event: ChainEvent) -> None:
        self._create(event, EscrowVariant.AFFILIATE)

    def _create(self, event: ChainEvent, variant: EscrowVariant) -> None:
        address = event.address_param("escrowAddress")
        payee = event.address_param("payee")
        source_address = event.address_param("storefront")
        arbiter = event.address_param("arbiter")

        escrow = self.store.load(OrderEscrow, address)
        if escrow is None:
            source_type, defaulted = self.resolver.classify_source(source_address)
            escrow = OrderEscrow(
                address=address,
                payee=payee,
                source_address=source_address,
                source_type=source_type,
                source_type_defaulted=defaulted,
                arbiter=arbiter,
                variant=variant,
            )
            mark_created(escrow, event)
        else:
            # Auction settlement got here first; keep its link and stamps.
            log.info("Escrow %s already known; refreshing from factory event", address)
            escrow.payee = payee
            escrow.source_address = source_address
            escrow.arbiter = arbiter
            escrow.variant = variant
            mark_updated(escrow, event)
        self.store.save(escrow)

        self.resolver.register_contract(address, _FAMILY_BY_VARIANT[variant], event)
        self.resolver.index_escrow_transaction(escrow, event.transaction_hash)
        self._link_new_escrow(escrow, event)
        log.info("Created %s escrow %s, payee %s", variant, address, payee)

    def _link_new_escrow(self, escrow: OrderEscrow, event: ChainEvent) -> None:
        auction = self.resolver.auction_for_escrow(escrow.address)
        if auction is not None:
            self.resolver.link_escrow_to_auction(escrow, auction)
            return
        order = self.store.load(Order, event.transaction_hash)
        if order is None:
            order = self.resolver.order_for_escrow(escrow.address)
        if order is not None:
            self.resolver.link_escrow_to_order(escrow, order)

    # Payment ---------------------------------------------------------------------

    def on_payer_set(self, event: ChainEvent) -> None:
        escrow = self._load_escrow(event, "payer")
        if escrow is None:
            return

        payer = event.address_param("payer")
        payment = OrderPayment(
            transaction_hash=event.transaction_hash,
            escrow=escrow.address,
            payer=payer,
            settle_deadline=event.optional_uint("settleDeadline"),
        )
        mark_created(payment, event)

        order = self.store.load(Order, event.transaction_hash)
        if order is not None:
            payment.order = order.transaction_hash
            order.payment = payment.transaction_hash
            self.store.save(order)
            log.info("Linked payment to order %s", order.transaction_hash)

        seaport_order = self.store.load(SeaportOrder, event.transaction_hash)
        if seaport_order is not None:
            payment.seaport_order = seaport_order.transaction_hash
            seaport_order.payment = payment.transaction_hash
            self.store.save(seaport_order)
            log.info("Linked payment to Seaport order %s", seaport_order.transaction_hash)

        escrow.payer = payer
        escrow.settle_deadline = payment.settle_deadline
        mark_updated(escrow, event)

        auction = self.resolver.linked_auction(escrow)
        if auction is not None and auction.current_bidder != payer:
            log.warning(
                "Payer %s of escrow %s differs from current bidder %s of auction %s",
                payer,
                escrow.address,
                auction.current_bidder,
                auction.key,
            )

        self.store.save(payment)
        self.store.save(escrow)
        self._move_linked_auction(escrow, None, event)

    # Settlement ------------------------------------------------------------------

    def _activity(
        self, event: ChainEvent, escrow: OrderEscrow, kind: EscrowActivityKind
    ) -> EscrowActivity:
        activity = EscrowActivity(
            transaction_hash=event.transaction_hash,
            log_index=event.log_index,
            escrow=escrow.address,
            kind=kind,
        )
        mark_created(activity, event)
        return activity

    def _transfer_activity(
        self, event: ChainEvent, escrow: OrderEscrow, kind: EscrowActivityKind
    ) -> EscrowActivity:
        activity = self._activity(event, escrow, kind)
        activity.to = event.optional_address("to")
        activity.token = event.optional_address("token")
        activity.amount = event.optional_uint("amount")
        return activity

    def _move_linked_auction(
        self, escrow: OrderEscrow, target: AuctionStatus | None, event: ChainEvent
    ) -> None:
        auction = self.resolver.linked_auction(escrow)
        if auction is None:
            return
        if target is not None and not auction.move_to(target):
            log.warning(
                "Auction %s cannot move from %s to %s", auction.key, auction.status, target
            )
        mark_updated(auction, event)
        self.store.save(auction)
        if target is not None:
            log.info(
                "Auction %s is now %s via escrow %s", auction.key, auction.status, escrow.address
            )

    def on_settled(self, event: ChainEvent) -> None:
        escrow = self._load_escrow(event, "settlement")
        if escrow is None:
            return
        activity = self._transfer_activity(event, escrow, EscrowActivityKind.SETTLED)
        escrow.is_settled = True
        if event.has("affiliate") or event.has("affiliateAmount"):
            # Settlement names the affiliate actually paid; it overrides earlier guesses.
            activity.affiliate = event.optional_address("affiliate")
            activity.affiliate_amount = event.optional_uint("affiliateAmount")
            escrow.affiliate = activity.affiliate
            escrow.affiliate_share = activity.affiliate_amount
            escrow.affiliate_confirmed = True
        mark_updated(escrow, event)
        self.store.save(activity)
        self.store.save(escrow)
        self._move_linked_auction(escrow, None, event)

    def on_refunded(self, event: ChainEvent) -> None:
        escrow = self._load_escrow(event, "refund")
        if escrow is None:
            return
        activity = self._transfer_activity(event, escrow, EscrowActivityKind.REFUNDED)
        escrow.is_refunded = True
        mark_updated(escrow, event)
        self.store.save(activity)
        self.store.save(escrow)
        self._move_linked_auction(escrow, AuctionStatus.CANCELLED, event)

    def on_disputed(self, event: ChainEvent) -> None:
        self._set_disputed(event, disputed=True)

    def on_dispute_removed(self, event: ChainEvent) -> None:
        self._set_disputed(event, disputed=False)

    def _set_disputed(self, event: ChainEvent, *, disputed: bool) -> None:
        escrow = self._load_escrow(event, "dispute")
        if escrow is None:
            return
        if disputed:
            activity = self._activity(event, escrow, EscrowActivityKind.DISPUTED)
            activity.actor = event.optional_address("disputeInitiator")
        else:
            activity = self._activity(event, escrow, EscrowActivityKind.DISPUTE_REMOVED)
            activity.actor = event.optional_address("disputeRemover")
        escrow.is_disputed = disputed
        mark_updated(escrow, event)
        self.store.save(activity)
        self.store.save(escrow)

    def on_dispute_resolved(self, event: ChainEvent) -> None:
        """``settled=true`` releases funds to the seller, ``false`` returns them to the buyer."""

        escrow = self._load_escrow(event, "dispute resolution")
        if escrow is None:
            return
        settled = event.flag("settled")
        activity = self._activity(event, escrow, EscrowActivityKind.DISPUTE_RESOLVED)
        activity.actor = event.optional_address("resolver")
        activity.settled = settled
        escrow.is_disputed = False
        if settled:
            escrow.is_settled = True
        else:
            escrow.is_refunded = True
        mark_updated(escrow, event)
        self.store.save(activity)
        self.store.save(escrow)
        target = AuctionStatus.COMPLETED if settled else AuctionStatus.CANCELLED
        self._move_linked_auction(escrow, target, event)

    def on_escape_address_set(self, event: ChainEvent) -> None:
        escrow = self._load_escrow(event, "escape address")
        if escrow is None:
            return
        activity = self._activity(event, escrow, EscrowActivityKind.ESCAPE_ADDRESS_SET)
        activity.escape_address = event.address_param("escapeAddress")
        escrow.escape_address = activity.escape_address
        mark_updated(escrow, event)
        self.store.save(activity)
        self.store.save(escrow)

    def on_escaped(self, event: ChainEvent) -> None:
        escrow = self._load_escrow(event, "escape")
        if escrow is None:
            return
        activity = self._transfer_activity(event, escrow, EscrowActivityKind.ESCAPED)
        escrow.is_escaped = True
        mark_updated(escrow, event)
        self.store.save(activity)
        self.store.save(escrow)
        log.warning("Escrow %s escaped %s to %s", escrow.address, activity.amount, activity.to)
        self._move_linked_auction(escrow, AuctionStatus.CANCELLED, event)

    # Arbiters --------------------------------------------------------------------

    def on_arbiter_change_proposed(self, event: ChainEvent) -> None:
        escrow = self._load_escrow(event, "arbiter proposal")
        if escrow is None:
            return
        change = ArbiterChange(
            transaction_hash=event.transaction_hash,
            log_index=event.log_index,
            escrow=escrow.address,
            old_arbiter=event.address_param("oldArbiter"),
            proposed_arbiter=event.address_param("proposedArbiter"),
        )
        mark_created(change, event)
        escrow.pending_arbiter_change = change.key
        mark_updated(escrow, event)
        self.store.save(change)
        self.store.save(escrow)

    def on_arbiter_change_approved(self, event: ChainEvent) -> None:
        escrow = self._load_escrow(event, "arbiter approval")
        if escrow is None:
            return
        new_arbiter = event.address_param("newArbiter")
        change = ArbiterChange(
            transaction_hash=event.transaction_hash,
            log_index=event.log_index,
            escrow=escrow.address,
            old_arbiter=event.address_param("oldArbiter"),
            new_arbiter=new_arbiter,
            approver=event.optional_address("approver"),
            approved=True,
        )
        mark_created(change, event)

        if escrow.pending_arbiter_change is not None:
            proposal = self.store.load(ArbiterChange, escrow.pending_arbiter_change)
            if proposal is not None and proposal.proposed_arbiter == new_arbiter:
                proposal.approved = True
                proposal.new_arbiter = new_arbiter
                proposal.approver = change.approver
                proposal.approved_by_change = change.key
                mark_updated(proposal, event)
                self.store.save(proposal)
                escrow.pending_arbiter_change = None

        escrow.arbiter = new_arbiter
        mark_updated(escrow, event)
        self.store.save(change)
        self.store.save(escrow)

        auction = self.resolver.linked_auction(escrow)
        if auction is not None:
            auction.arbiter = new_arbiter
            mark_updated(auction, event)
            self.store.save(auction)
        log.info("Arbiter of escrow %s is now %s", escrow.address, new_arbiter)
