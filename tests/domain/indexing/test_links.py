from __future__ import annotations

from typing import TYPE_CHECKING

from marketledger.domain.indexing import CrossReferenceResolver
from marketledger.domain.model import (
    Order,
    OrderEscrow,
    OrderLink,
    OrderPayment,
    SaleAttestation,
    SourceType,
)
from tests.helpers.events import (
    ALICE,
    ESCROW,
    EventKind,
    addr,
    escrow_created,
    escrow_event,
    order_fulfilled,
    storefront_created,
    tx,
)

if TYPE_CHECKING:
    from marketledger.adapters.memory import InMemoryEntityStore
    from marketledger.domain.indexing import EventRouter

SALE_TX = tx(0x5A1E)


def _assert_linked(store: InMemoryEntityStore, escrow_address: str = ESCROW) -> None:
    escrow = store.load(OrderEscrow, escrow_address)
    order = store.load(Order, SALE_TX)
    assert escrow is not None
    assert order is not None
    assert escrow.link == OrderLink(SALE_TX)
    assert escrow.order == SALE_TX
    assert order.escrow_contract == escrow_address


def test_escrow_then_order_in_same_transaction(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    router.dispatch(escrow_created(transaction_hash=SALE_TX, log_index=1))
    router.dispatch(order_fulfilled(transaction_hash=SALE_TX, log_index=4))

    _assert_linked(store)


def test_order_then_escrow_in_same_transaction(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    router.dispatch(order_fulfilled(transaction_hash=SALE_TX, log_index=1))
    router.dispatch(escrow_created(transaction_hash=SALE_TX, log_index=4))

    _assert_linked(store)


def test_order_naming_escrow_links_when_escrow_arrives_later(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    router.dispatch(order_fulfilled(transaction_hash=SALE_TX, escrowContract=ESCROW))
    router.dispatch(escrow_created())

    _assert_linked(store)


def test_payment_and_order_in_same_transaction_reference_each_other(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    router.dispatch(escrow_created(transaction_hash=SALE_TX, log_index=0))
    router.dispatch(
        escrow_event(EventKind.PAYER_SET, payer=ALICE, transaction_hash=SALE_TX, log_index=1)
    )
    router.dispatch(order_fulfilled(transaction_hash=SALE_TX, log_index=2))

    order = store.load(Order, SALE_TX)
    payment = store.load(OrderPayment, SALE_TX)
    assert order is not None
    assert payment is not None
    assert order.payment == SALE_TX
    assert payment.order == SALE_TX


def test_escrow_is_not_relinked_to_a_second_order(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    router.dispatch(escrow_created(transaction_hash=SALE_TX, log_index=0))
    router.dispatch(order_fulfilled(transaction_hash=SALE_TX, log_index=1))
    other_tx = tx(0xBEEF)
    router.dispatch(order_fulfilled(transaction_hash=other_tx, escrowContract=ESCROW))

    escrow = store.load(OrderEscrow, ESCROW)
    assert escrow is not None
    assert escrow.order == SALE_TX


def test_classify_source_prefers_known_entities(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    resolver = CrossReferenceResolver(store)

    assert resolver.classify_source(addr(0xA2)) == (SourceType.STOREFRONT, False)
    assert resolver.classify_source(addr(0x777)) == (SourceType.STOREFRONT, True)


def _attestation(uid: str, timestamp: int) -> SaleAttestation:
    return SaleAttestation(
        uid=uid,
        sale_transaction_hash=SALE_TX,
        buyer=ALICE,
        seller=addr(0xB1),
        escrow_contract=ESCROW,
        storefront_contract=addr(0xA2),
        timestamp=timestamp,
    )


def _order() -> Order:
    return Order(
        transaction_hash=SALE_TX,
        buyer=ALICE,
        seller=addr(0xB1),
        storefront=addr(0xA2),
        token_id=1,
        amount=1,
    )


def test_promote_attestation_keeps_newer_latest(store: InMemoryEntityStore) -> None:
    resolver = CrossReferenceResolver(store)
    order = _order()
    newer = _attestation("0x02", timestamp=200)
    older = _attestation("0x01", timestamp=100)

    assert resolver.promote_attestation(newer, order) is True
    store.save(newer)
    assert resolver.promote_attestation(older, order) is False

    assert order.latest_attestation == "0x02"
    assert older.is_latest is False


def test_promote_attestation_tie_goes_to_later_arrival(store: InMemoryEntityStore) -> None:
    resolver = CrossReferenceResolver(store)
    order = _order()
    first = _attestation("0x01", timestamp=100)
    second = _attestation("0x02", timestamp=100)

    resolver.promote_attestation(first, order)
    store.save(first)
    assert resolver.promote_attestation(second, order) is True

    demoted = store.load(SaleAttestation, "0x01")
    assert demoted is not None
    assert demoted.is_latest is False
    assert order.latest_attestation == "0x02"
