from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from marketledger.domain.indexing import DispatchOutcome
from marketledger.domain.model import (
    ArbiterChange,
    Auction,
    AuctionKey,
    AuctionStatus,
    EscrowActivity,
    EscrowActivityKind,
    EscrowVariant,
    EventKind,
    OrderEscrow,
    OrderPayment,
    SourceType,
)
from tests.helpers.events import (
    AFFILIATE,
    ALICE,
    ARBITER,
    BOB,
    ESCROW,
    HOUSE,
    OWNER,
    STOREFRONT,
    addr,
    auction_created,
    auction_ended,
    auction_house_created,
    bid_created,
    escrow_created,
    escrow_event,
    storefront_created,
)

if TYPE_CHECKING:
    from marketledger.adapters.memory import InMemoryEntityStore
    from marketledger.domain.indexing import EventRouter

NEW_ARBITER = addr(0xE1)


def _escrow(store: InMemoryEntityStore, address: str = ESCROW) -> OrderEscrow:
    escrow = store.load(OrderEscrow, address)
    assert escrow is not None
    return escrow


def _auction_with_escrow(router: EventRouter) -> None:
    router.dispatch(auction_house_created())
    router.dispatch(auction_created(7, escrow=ESCROW))
    router.dispatch(escrow_created(source=HOUSE))
    router.dispatch(bid_created(7, BOB, 150))


def test_escrow_created_classifies_known_storefront(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    router.dispatch(escrow_created())

    escrow = _escrow(store)
    assert escrow.source_type == SourceType.STOREFRONT
    assert escrow.source_type_defaulted is False
    assert escrow.arbiter == ARBITER
    assert escrow.variant == EscrowVariant.SIMPLE
    assert escrow.is_linked is False


def test_escrow_from_unknown_source_defaults_to_storefront(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(escrow_created(source=addr(0x999), affiliate=True))

    escrow = _escrow(store)
    assert escrow.source_type == SourceType.STOREFRONT
    assert escrow.source_type_defaulted is True
    assert escrow.variant == EscrowVariant.AFFILIATE


def test_escrow_created_after_auction_links_to_it(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    _auction_with_escrow(router)

    escrow = _escrow(store)
    assert escrow.auction == AuctionKey(HOUSE, 7)
    assert escrow.source_type == SourceType.AUCTION_HOUSE
    auction = store.load(Auction, AuctionKey(HOUSE, 7))
    assert auction is not None
    assert auction.escrow == ESCROW


def test_auction_created_after_escrow_reclassifies_it(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(escrow_created(source=addr(0x999)))
    router.dispatch(auction_house_created())
    router.dispatch(auction_created(7, escrow=ESCROW))

    escrow = _escrow(store)
    assert escrow.auction == AuctionKey(HOUSE, 7)
    assert escrow.source_type == SourceType.AUCTION_HOUSE
    assert escrow.source_type_defaulted is False


def test_payer_set_records_payment(router: EventRouter, store: InMemoryEntityStore) -> None:
    router.dispatch(storefront_created())
    router.dispatch(escrow_created())
    event = escrow_event(EventKind.PAYER_SET, payer=ALICE, settleDeadline=1_700_100_000)
    router.dispatch(event)

    payment = store.load(OrderPayment, event.transaction_hash)
    assert payment is not None
    assert payment.payer == ALICE
    assert payment.escrow == ESCROW
    escrow = _escrow(store)
    assert escrow.payer == ALICE
    assert escrow.settle_deadline == 1_700_100_000


@pytest.mark.parametrize(
    ("settled", "expected_status"),
    [(True, AuctionStatus.COMPLETED), (False, AuctionStatus.CANCELLED)],
)
def test_dispute_resolution_drives_linked_auction(
    router: EventRouter,
    store: InMemoryEntityStore,
    settled: bool,
    expected_status: AuctionStatus,
) -> None:
    _auction_with_escrow(router)
    router.dispatch(escrow_event(EventKind.DISPUTED, disputeInitiator=BOB))
    assert _escrow(store).is_disputed is True

    event = escrow_event(EventKind.DISPUTE_RESOLVED, resolver=ARBITER, settled=settled)
    router.dispatch(event)

    escrow = _escrow(store)
    assert escrow.is_disputed is False
    assert escrow.is_settled is settled
    assert escrow.is_refunded is (not settled)
    auction = store.load(Auction, AuctionKey(HOUSE, 7))
    assert auction is not None
    assert auction.status == expected_status
    activity = store.load(EscrowActivity, event.key)
    assert activity is not None
    assert activity.kind == EscrowActivityKind.DISPUTE_RESOLVED
    assert activity.settled is settled


def test_dispute_can_be_raised_again_after_removal(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(escrow_created())
    router.dispatch(escrow_event(EventKind.DISPUTED, disputeInitiator=ALICE))
    router.dispatch(escrow_event(EventKind.DISPUTE_REMOVED, disputeRemover=ALICE))
    assert _escrow(store).is_disputed is False

    router.dispatch(escrow_event(EventKind.DISPUTED, disputeInitiator=ALICE))
    assert _escrow(store).is_disputed is True


def test_refund_cancels_linked_auction(router: EventRouter, store: InMemoryEntityStore) -> None:
    _auction_with_escrow(router)
    router.dispatch(escrow_event(EventKind.REFUNDED, to=BOB, token=addr(0xD1), amount=150))

    assert _escrow(store).is_refunded is True
    auction = store.load(Auction, AuctionKey(HOUSE, 7))
    assert auction is not None
    assert auction.status == AuctionStatus.CANCELLED


def test_refund_after_completion_keeps_terminal_state_consistent(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    _auction_with_escrow(router)
    router.dispatch(auction_ended(7, BOB, 150))
    router.dispatch(escrow_event(EventKind.REFUNDED, to=BOB, amount=150))

    auction = store.load(Auction, AuctionKey(HOUSE, 7))
    assert auction is not None
    assert auction.status.is_terminal


def test_settlement_affiliate_overrides_auction_end(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    _auction_with_escrow(router)
    router.dispatch(
        escrow_event(EventKind.SETTLED, to=BOB, amount=140, affiliate=AFFILIATE, affiliateAmount=10)
    )
    router.dispatch(auction_ended(7, BOB, 150, affiliate=addr(0xEE)))

    escrow = _escrow(store)
    assert escrow.is_settled is True
    assert escrow.affiliate == AFFILIATE
    assert escrow.affiliate_share == 10
    assert escrow.affiliate_confirmed is True


def test_escape_records_activity(router: EventRouter, store: InMemoryEntityStore) -> None:
    router.dispatch(escrow_created())
    router.dispatch(escrow_event(EventKind.ESCAPE_ADDRESS_SET, escapeAddress=ALICE))
    event = escrow_event(EventKind.ESCAPED, to=ALICE, token=addr(0xD1), amount=99)
    router.dispatch(event)

    escrow = _escrow(store)
    assert escrow.escape_address == ALICE
    assert escrow.is_escaped is True
    activity = store.load(EscrowActivity, event.key)
    assert activity is not None
    assert activity.amount == 99


def test_arbiter_change_approved_updates_escrow(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    router.dispatch(escrow_created())
    event = escrow_event(
        EventKind.ARBITER_CHANGE_APPROVED,
        oldArbiter=ARBITER,
        newArbiter=NEW_ARBITER,
        approver=ALICE,
    )
    router.dispatch(event)

    assert _escrow(store).arbiter == NEW_ARBITER
    change = store.load(ArbiterChange, event.key)
    assert change is not None
    assert change.approved is True
    assert change.new_arbiter == NEW_ARBITER


def test_arbiter_change_approval_closes_pending_proposal(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    _auction_with_escrow(router)
    proposal = escrow_event(
        EventKind.ARBITER_CHANGE_PROPOSED, oldArbiter=ARBITER, proposedArbiter=NEW_ARBITER
    )
    router.dispatch(proposal)
    assert _escrow(store).pending_arbiter_change == proposal.key

    approval = escrow_event(
        EventKind.ARBITER_CHANGE_APPROVED, oldArbiter=ARBITER, newArbiter=NEW_ARBITER
    )
    router.dispatch(approval)

    escrow = _escrow(store)
    assert escrow.pending_arbiter_change is None
    proposed = store.load(ArbiterChange, proposal.key)
    assert proposed is not None
    assert proposed.approved is True
    assert proposed.approved_by_change == approval.key
    auction = store.load(Auction, AuctionKey(HOUSE, 7))
    assert auction is not None
    assert auction.arbiter == NEW_ARBITER


def test_events_for_unknown_escrow_are_dropped(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    event = escrow_event(EventKind.SETTLED, escrow=addr(0x404), to=ALICE, amount=1)
    router.dispatch(event)

    assert store.load(OrderEscrow, addr(0x404)) is None
    assert store.load(EscrowActivity, event.key) is None


def test_storefront_escrow_stays_with_storefront(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    router.dispatch(escrow_created(source=STOREFRONT))

    assert _escrow(store).source_address == STOREFRONT


def _linked_auction(store: InMemoryEntityStore) -> Auction:
    auction = store.load(Auction, AuctionKey(HOUSE, 7))
    assert auction is not None
    return auction


def test_escape_cancels_linked_auction(router: EventRouter, store: InMemoryEntityStore) -> None:
    _auction_with_escrow(router)
    assert _linked_auction(store).status == AuctionStatus.ACTIVE

    event = escrow_event(EventKind.ESCAPED, to=ALICE, token=addr(0xD1), amount=150)
    router.dispatch(event)

    assert _escrow(store).is_escaped is True
    auction = _linked_auction(store)
    assert auction.status == AuctionStatus.CANCELLED
    assert auction.last_updated_tx == event.transaction_hash


def test_payer_mismatch_is_logged_without_failing(
    router: EventRouter, store: InMemoryEntityStore, caplog: pytest.LogCaptureFixture
) -> None:
    _auction_with_escrow(router)
    before = _linked_auction(store)

    event = escrow_event(EventKind.PAYER_SET, payer=ALICE, settleDeadline=1_700_100_000)
    with caplog.at_level(logging.WARNING, logger="marketledger.domain.indexing.escrows"):
        outcome = router.dispatch(event)

    assert outcome == DispatchOutcome.HANDLED
    assert "differs from current bidder" in caplog.text
    assert _escrow(store).payer == ALICE
    payment = store.load(OrderPayment, event.transaction_hash)
    assert payment is not None
    auction = _linked_auction(store)
    assert auction.status == before.status
    assert auction.current_bidder == BOB
    assert auction.highest_bid_amount == before.highest_bid_amount
    assert auction.last_updated_tx == event.transaction_hash


def test_matching_payer_logs_no_warning(
    router: EventRouter, store: InMemoryEntityStore, caplog: pytest.LogCaptureFixture
) -> None:
    _auction_with_escrow(router)

    with caplog.at_level(logging.WARNING, logger="marketledger.domain.indexing.escrows"):
        router.dispatch(escrow_event(EventKind.PAYER_SET, payer=BOB))

    assert "differs from current bidder" not in caplog.text


def test_settlement_touches_linked_auction(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    _auction_with_escrow(router)
    before = _linked_auction(store)

    event = escrow_event(EventKind.SETTLED, to=OWNER, token=addr(0xD1), amount=150)
    router.dispatch(event)

    auction = _linked_auction(store)
    assert auction.last_updated_tx == event.transaction_hash
    assert auction.last_updated_tx != before.last_updated_tx
    assert auction.status == AuctionStatus.ACTIVE
