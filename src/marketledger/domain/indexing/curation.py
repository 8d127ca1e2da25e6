"""Curation storefronts: curations, their curators and the listings they collect.

A curation contract is announced by no factory. Its first CurationCreated registers
the contract, so that its ListingUpdated and Transfer logs, which share their names
with storefront and auction-item logs, route here afterwards.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from marketledger.domain.indexing.context import mark_created, mark_updated
from marketledger.domain.model import (
    ContractFamily,
    Curation,
    CurationKey,
    CurationListing,
    CurationListingKey,
    Curator,
    CuratorAction,
    CuratorActionKind,
    CuratorKey,
    ListingKey,
    Storefront,
    TokenListing,
)

if TYPE_CHECKING:
    from marketledger.domain.events import ChainEvent
    from marketledger.domain.indexing.links import CrossReferenceResolver
    from marketledger.domain.ports import EntityStore

log = getLogger(__name__)


class CurationTracker:
    """Owns Curation, Curator, CuratorAction and CurationListing records."""

    def __init__(self, store: EntityStore, resolver: CrossReferenceResolver) -> None:
        self.store = store
        self.resolver = resolver

    def _load_curation(self, event: ChainEvent, purpose: str) -> Curation | None:
        key = CurationKey(event.address, event.uint("curationId"))
        curation = self.store.load(Curation, key)
        if curation is None:
            log.warning("Curation %s not found for %s", key, purpose)
        return curation

    def _record_action(
        self, event: ChainEvent, curator: Curator, action: CuratorActionKind
    ) -> None:
        record = CuratorAction(
            transaction_hash=event.transaction_hash,
            log_index=event.log_index,
            curation=CurationKey(curator.contract, curator.curation_id),
            curator=curator.curator,
            action=action,
        )
        mark_created(record, event)
        self.store.save(record)

    # Curations -------------------------------------------------------------------

    def on_curation_created(self, event: ChainEvent) -> None:
        curation = Curation(
            contract=event.address,
            curation_id=event.uint("curationId"),
            name=event.text("name", ""),
            description=event.text("description", ""),
            payment_address=event.optional_address("paymentAddress"),
            owner=event.address_param("owner"),
        )
        mark_created(curation, event)
        self.store.save(curation)
        if self.resolver.registered_family(event.address) is None:
            self.resolver.register_contract(
                event.address, ContractFamily.CURATION_STOREFRONT, event
            )

        # The creator is the first curator.
        self._add_curator(event, curation.key, curation.owner)
        log.info("Created curation %s, owner %s", curation.key, curation.owner)

    def on_payment_address_updated(self, event: ChainEvent) -> None:
        curation = self._load_curation(event, "payment address")
        if curation is None:
            return
        curation.payment_address = event.address_param("newAddress")
        mark_updated(curation, event)
        self.store.save(curation)

    def on_metadata_updated(self, event: ChainEvent) -> None:
        curation = self._load_curation(event, "metadata")
        if curation is None:
            return
        curation.token_uri = event.text("newTokenURI", "") or None
        mark_updated(curation, event)
        self.store.save(curation)

    def on_transfer(self, event: ChainEvent) -> None:
        """Curations are ERC721 tokens; a transfer moves ownership of the curation."""

        key = CurationKey(event.address, event.uint("tokenId"))
        curation = self.store.load(Curation, key)
        if curation is None:
            if event.optional_address("from") is None:
                log.warning("Mint of curation %s seen without CurationCreated", key)
            return
        curation.owner = event.address_param("to")
        mark_updated(curation, event)
        self.store.save(curation)
        log.info("Curation %s now owned by %s", key, curation.owner)

    # Curators --------------------------------------------------------------------

    def on_curator_added(self, event: ChainEvent) -> None:
        key = CurationKey(event.address, event.uint("curationId"))
        self._add_curator(event, key, event.address_param("curator"))

    def _add_curator(self, event: ChainEvent, curation: CurationKey, address: str) -> None:
        key = CuratorKey(curation.contract, curation.curation_id, address)
        curator = self.store.load(Curator, key)
        if curator is None:
            curator = Curator(
                contract=curation.contract, curation_id=curation.curation_id, curator=address
            )
            mark_created(curator, event)
        else:
            mark_updated(curator, event)
        if curator.added_tx is None or not curator.is_active:
            curator.added_at = event.block_timestamp
            curator.added_tx = event.transaction_hash
        curator.is_active = True
        curator.removed_at = None
        curator.removed_tx = None
        self.store.save(curator)
        self._record_action(event, curator, CuratorActionKind.ADDED)

    def on_curator_removed(self, event: ChainEvent) -> None:
        key = CuratorKey(event.address, event.uint("curationId"), event.address_param("curator"))
        curator = self.store.load(Curator, key)
        if curator is None:
            log.warning("Curator %s not found for removal", key)
            return
        curator.is_active = False
        curator.removed_at = event.block_timestamp
        curator.removed_tx = event.transaction_hash
        mark_updated(curator, event)
        self.store.save(curator)
        self._record_action(event, curator, CuratorActionKind.REMOVED)

    # Listings --------------------------------------------------------------------

    def on_listing_curated(self, event: ChainEvent) -> None:
        storefront_address = event.address_param("storefrontAddress")
        storefront = self.store.load(Storefront, storefront_address)
        if storefront is None:
            log.warning("Storefront %s not found for curated listing", storefront_address)
            return

        listing = CurationListing(
            contract=event.address,
            curation_id=event.uint("curationId"),
            listing_id=event.uint("listingId"),
            storefront=storefront.address,
            token_id=event.uint("tokenId"),
            erc1155_token=storefront.erc1155_token,
        )
        source = self.store.load(TokenListing, ListingKey(storefront.address, listing.token_id))
        if source is not None:
            self._mirror(listing, source)
            listing.token_uri = source.token_uri
            listing.contract_uri = source.contract_uri
        else:
            log.warning(
                "Token listing %s/%s not found for curation",
                storefront.address,
                listing.token_id,
            )
        mark_created(listing, event)
        self.store.save(listing)
        log.info("Curated listing %s", listing.key)

    def on_listing_updated(self, event: ChainEvent) -> None:
        key = CurationListingKey(event.address, event.uint("curationId"), event.uint("listingId"))
        listing = self.store.load(CurationListing, key)
        if listing is None:
            log.warning("Curated listing %s not found for update", key)
            return
        listing.active = event.flag("active")
        # The storefront listing may have changed since it was curated.
        source = self.store.load(TokenListing, ListingKey(listing.storefront, listing.token_id))
        if source is not None:
            self._mirror(listing, source)
        mark_updated(listing, event)
        self.store.save(listing)

    @staticmethod
    def _mirror(listing: CurationListing, source: TokenListing) -> None:
        listing.price = source.price
        listing.payment_token = source.payment_token
        listing.affiliate_fee = source.affiliate_fee
