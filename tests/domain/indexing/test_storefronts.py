from __future__ import annotations

from typing import TYPE_CHECKING

from marketledger.domain.model import (
    ContractFamily,
    ContractRegistration,
    EventKind,
    ListingKey,
    Order,
    Storefront,
    StorefrontVariant,
    TokenListing,
)
from tests.helpers.events import (
    ALICE,
    ARBITER,
    ERC1155,
    OWNER,
    STOREFRONT,
    STOREFRONT_FACTORY,
    addr,
    make_event,
    order_fulfilled,
    storefront_created,
)

if TYPE_CHECKING:
    from marketledger.adapters.memory import InMemoryEntityStore
    from marketledger.domain.indexing import EventRouter
    from tests.helpers.contracts import StaticContractReader

SEAPORT = addr(0x5EA)
PAYMENT_TOKEN = addr(0xD1)


def _storefront(store: InMemoryEntityStore) -> Storefront:
    storefront = store.load(Storefront, STOREFRONT)
    assert storefront is not None
    return storefront


def _listing(store: InMemoryEntityStore, token_id: int = 7) -> TokenListing:
    listing = store.load(TokenListing, ListingKey(STOREFRONT, token_id))
    assert listing is not None
    return listing


def _add_listing(router: EventRouter, token_id: int = 7, price: int = 1000) -> None:
    router.dispatch(
        make_event(
            EventKind.LISTING_ADDED,
            STOREFRONT,
            tokenId=token_id,
            price=price,
            paymentToken=PAYMENT_TOKEN,
        )
    )


def test_storefront_created_backfills_settings(
    router: EventRouter, store: InMemoryEntityStore, reader: StaticContractReader
) -> None:
    reader.stub(STOREFRONT, "getArbiter", ARBITER)
    reader.stub(STOREFRONT, "MIN_SETTLE_TIME", 3600)
    reader.stub(STOREFRONT, "settleDeadline", "0x15180")
    reader.stub(STOREFRONT, "ready", True)
    reader.stub(STOREFRONT, "SEAPORT", SEAPORT.upper())
    reader.stub(ERC1155, "contractURI", "ipfs://collection.json")

    router.dispatch(storefront_created())

    storefront = _storefront(store)
    assert storefront.variant == StorefrontVariant.SIMPLE
    assert storefront.owner == OWNER
    assert storefront.arbiter == ARBITER
    assert storefront.min_settle_time == 3600
    assert storefront.settle_deadline == 86400
    assert storefront.ready is True
    assert storefront.seaport == SEAPORT
    assert storefront.contract_uri == "ipfs://collection.json"
    registration = store.load(ContractRegistration, STOREFRONT)
    assert registration is not None
    assert registration.family == ContractFamily.STOREFRONT
    assert registration.registered_by == STOREFRONT_FACTORY


def test_storefront_created_with_failed_reads_uses_defaults(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())

    storefront = _storefront(store)
    assert storefront.arbiter is None
    assert storefront.min_settle_time == 0
    assert storefront.ready is False
    assert storefront.seaport is None
    assert storefront.contract_uri is None


def test_affiliate_factory_creates_affiliate_storefront(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(
        make_event(
            EventKind.STOREFRONT_CREATED,
            addr(0xF6),
            family=ContractFamily.AFFILIATE_STOREFRONT_FACTORY,
            storefront=STOREFRONT,
            owner=OWNER,
            erc1155Token=ERC1155,
            escrowFactory=addr(0xF2),
            affiliateVerifier=addr(0xF7),
        )
    )

    storefront = _storefront(store)
    assert storefront.variant == StorefrontVariant.AFFILIATE
    assert storefront.is_affiliate_enabled is True
    assert storefront.affiliate_verifier == addr(0xF7)
    registration = store.load(ContractRegistration, STOREFRONT)
    assert registration is not None
    assert registration.family == ContractFamily.AFFILIATE_STOREFRONT


def test_listing_lifecycle(
    router: EventRouter, store: InMemoryEntityStore, reader: StaticContractReader
) -> None:
    reader.stub(ERC1155, "uri", "ipfs://token/{id}.json")
    router.dispatch(storefront_created())
    _add_listing(router)

    listing = _listing(store)
    assert listing.price == 1000
    assert listing.active is True
    assert listing.token_uri == "ipfs://token/{id}.json"

    router.dispatch(
        make_event(EventKind.LISTING_UPDATED, STOREFRONT, tokenId=7, newPrice=1500)
    )
    assert _listing(store).price == 1500
    assert _listing(store).payment_token == PAYMENT_TOKEN

    router.dispatch(make_event(EventKind.LISTING_REMOVED, STOREFRONT, tokenId=7))
    assert _listing(store).active is False


def test_listing_update_for_unknown_listing_is_ignored(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    router.dispatch(
        make_event(EventKind.LISTING_UPDATED, STOREFRONT, tokenId=99, newPrice=1)
    )

    assert store.load(TokenListing, ListingKey(STOREFRONT, 99)) is None


def test_ready_state_and_settle_deadline(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    router.dispatch(make_event(EventKind.READY_STATE_CHANGED, STOREFRONT, newState=True))
    router.dispatch(
        make_event(EventKind.SETTLE_DEADLINE_UPDATED, STOREFRONT, newSettleDeadline=7200)
    )

    storefront = _storefront(store)
    assert storefront.ready is True
    assert storefront.settle_deadline == 7200


def test_token_address_change_resets_ready(
    router: EventRouter, store: InMemoryEntityStore, reader: StaticContractReader
) -> None:
    new_token = addr(0xA6)
    reader.stub(new_token, "contractURI", "ipfs://new.json")
    router.dispatch(storefront_created())
    router.dispatch(make_event(EventKind.READY_STATE_CHANGED, STOREFRONT, newState=True))
    router.dispatch(
        make_event(EventKind.ERC1155_TOKEN_ADDRESS_CHANGED, STOREFRONT, newAddress=new_token)
    )

    storefront = _storefront(store)
    assert storefront.erc1155_token == new_token
    assert storefront.ready is False
    assert storefront.contract_uri == "ipfs://new.json"


def test_order_on_known_storefront_is_recorded(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created())
    event = order_fulfilled(encryptedData=b"\xca\xfe", iv="nonce")
    router.dispatch(event)

    order = store.load(Order, event.transaction_hash)
    assert order is not None
    assert order.buyer == ALICE
    assert order.seller == OWNER
    assert order.token_id == 7
    assert order.price == 1000
    assert order.encrypted_data == "0xcafe"
    assert order.escrow_contract is None


def test_order_on_unknown_storefront_is_dropped(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    event = order_fulfilled()
    router.dispatch(event)

    assert store.load(Order, event.transaction_hash) is None


def test_storefront_with_affiliate_verifier_is_indexed_as_affiliate(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(storefront_created(affiliateVerifier=addr(0xF7)))

    storefront = _storefront(store)
    assert storefront.variant == StorefrontVariant.AFFILIATE
    assert storefront.is_affiliate_enabled is True
    assert storefront.affiliate_verifier == addr(0xF7)
    registration = store.load(ContractRegistration, STOREFRONT)
    assert registration is not None
    assert registration.family == ContractFamily.AFFILIATE_STOREFRONT


def test_explicit_simple_factory_keeps_simple_variant(
    router: EventRouter, store: InMemoryEntityStore
) -> None:
    router.dispatch(
        storefront_created(
            family=ContractFamily.STOREFRONT_FACTORY, affiliateVerifier=addr(0xF7)
        )
    )

    storefront = _storefront(store)
    assert storefront.variant == StorefrontVariant.SIMPLE
    assert storefront.is_affiliate_enabled is False
