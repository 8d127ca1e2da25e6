from __future__ import annotations

from typing import TYPE_CHECKING

from marketledger.domain.indexing import (
    DEFAULT_FAMILY_BY_KIND,
    DispatchOutcome,
    EventRouter,
)
from marketledger.domain.model import (
    AuctionHouse,
    ContractFamily,
    EventKind,
    ProcessedEvent,
    Storefront,
    StorefrontVariant,
)
from tests.helpers.events import (
    HOUSE,
    HOUSE_FACTORY,
    STOREFRONT,
    auction_house_created,
    make_event,
    storefront_created,
)

if TYPE_CHECKING:
    from marketledger.adapters.memory import InMemoryEntityStore
    from tests.helpers.contracts import StaticContractReader


def test_every_event_kind_has_a_default_family() -> None:
    assert set(DEFAULT_FAMILY_BY_KIND) == set(EventKind)


def test_every_default_family_has_a_handler(
    store: InMemoryEntityStore, reader: StaticContractReader
) -> None:
    router = EventRouter.build(store, reader)
    for kind, family in DEFAULT_FAMILY_BY_KIND.items():
        assert (family, kind) in router.handlers


def test_handled_event_is_recorded(router: EventRouter, store: InMemoryEntityStore) -> None:
    event = auction_house_created()

    assert router.dispatch(event) == DispatchOutcome.HANDLED

    processed = store.load(ProcessedEvent, event.key)
    assert processed is not None
    assert processed.kind == EventKind.AUCTION_HOUSE_CREATED


def test_redelivered_event_is_skipped(router: EventRouter, store: InMemoryEntityStore) -> None:
    event = auction_house_created()
    router.dispatch(event)
    house = store.load(AuctionHouse, HOUSE)
    assert house is not None
    house.name = "Renamed"
    store.save(house)

    assert router.dispatch(event) == DispatchOutcome.DUPLICATE

    reloaded = store.load(AuctionHouse, HOUSE)
    assert reloaded is not None
    assert reloaded.name == "Renamed"


def test_redelivery_is_reprocessed_without_deduplication(
    store: InMemoryEntityStore, reader: StaticContractReader
) -> None:
    router = EventRouter.build(store, reader, deduplicate=False)
    event = auction_house_created()

    assert router.dispatch(event) == DispatchOutcome.HANDLED
    assert router.dispatch(event) == DispatchOutcome.HANDLED


def test_unrouted_event_is_not_recorded(router: EventRouter, store: InMemoryEntityStore) -> None:
    event = make_event(
        EventKind.AUCTION_HOUSE_CREATED,
        HOUSE,
        family=ContractFamily.ESCROW,
        auctionHouse=HOUSE,
    )

    assert router.dispatch(event) == DispatchOutcome.UNROUTED
    assert store.load(ProcessedEvent, event.key) is None


def test_malformed_event_is_reported_and_not_recorded(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    event = make_event(EventKind.AUCTION_HOUSE_CREATED, HOUSE_FACTORY, auctionHouse=HOUSE)

    assert router.dispatch(event) == DispatchOutcome.MALFORMED
    assert store.load(ProcessedEvent, event.key) is None


def test_invalid_parameter_is_malformed(router: EventRouter) -> None:
    event = auction_house_created(owner="not-an-address")

    assert router.dispatch(event) == DispatchOutcome.MALFORMED


def test_registered_family_routes_storefront_events(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    assert router.resolve_family(
        make_event(EventKind.READY_STATE_CHANGED, STOREFRONT, newState=True)
    ) == ContractFamily.STOREFRONT

    router.dispatch(make_event(EventKind.READY_STATE_CHANGED, STOREFRONT, newState=True))
    storefront = store.load(Storefront, STOREFRONT)
    assert storefront is not None
    assert storefront.ready is True


def test_explicit_family_selects_factory_variant(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    event = storefront_created()
    v2 = make_event(
        event.kind,
        event.address,
        family=ContractFamily.STOREFRONT_FACTORY_V2,
        **dict(event.params),
    )

    assert router.dispatch(v2) == DispatchOutcome.HANDLED

    storefront = store.load(Storefront, STOREFRONT)
    assert storefront is not None
    assert storefront.variant == StorefrontVariant.V2
    assert router.resolve_family(make_event(EventKind.LISTING_ADDED, STOREFRONT)) == (
        ContractFamily.STOREFRONT_V2
    )


def test_custom_handler_table(store: InMemoryEntityStore) -> None:
    seen: list[EventKind] = []
    router = EventRouter(
        store,
        {(ContractFamily.ATTESTATION, EventKind.SALE_ATTESTED): lambda e: seen.append(e.kind)},
    )

    assert router.dispatch(make_event(EventKind.SALE_ATTESTED, HOUSE)) == DispatchOutcome.HANDLED
    assert router.dispatch(make_event(EventKind.REVIEW_SUBMITTED, HOUSE)) == (
        DispatchOutcome.UNROUTED
    )
    assert seen == [EventKind.SALE_ATTESTED]


def test_build_handler_table_covers_all_storefront_families(
    store: InMemoryEntityStore, reader: StaticContractReader
) -> None:
    table = EventRouter.build(store, reader).handlers

    for family in (
        ContractFamily.STOREFRONT,
        ContractFamily.STOREFRONT_V2,
        ContractFamily.AFFILIATE_STOREFRONT,
    ):
        assert (family, EventKind.STOREFRONT_ORDER_FULFILLED) in table
