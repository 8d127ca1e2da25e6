"""Auction-item ERC721 collections: creation, transfers and token metadata."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from marketledger.domain.indexing.context import mark_created, mark_updated
from marketledger.domain.model import (
    UNKNOWN_COLLECTION_NAME,
    UNKNOWN_COLLECTION_SYMBOL,
    ZERO_ADDRESS,
    AuctionItemCollection,
    AuctionItemToken,
    AuctionStatus,
    ContractFamily,
    TokenKey,
    TokenMetadata,
)

if TYPE_CHECKING:
    from marketledger.domain.events import ChainEvent
    from marketledger.domain.indexing.links import CrossReferenceResolver
    from marketledger.domain.ports import ContractReader, EntityStore

log = getLogger(__name__)


class AuctionItemTracker:
    """Owns AuctionItemCollection, AuctionItemToken and TokenMetadata records.

    Tokens find their auction through the token -> auction index kept by the
    resolver; the most recently created auction for a token wins.
    """

    def __init__(
        self,
        store: EntityStore,
        reader: ContractReader,
        resolver: CrossReferenceResolver,
    ) -> None:
        self.store = store
        self.reader = reader
        self.resolver = resolver

    def _read_text(self, address: str, function: str) -> str | None:
        value = self.reader.read(address, function).value_or(None)
        return value if isinstance(value, str) and value else None

    def on_collection_created(self, event: ChainEvent) -> None:
        address = event.address_param("tokenContract")
        collection = AuctionItemCollection(
            address=address,
            owner=event.address_param("owner"),
            name=self._read_text(address, "name") or UNKNOWN_COLLECTION_NAME,
            symbol=self._read_text(address, "symbol") or UNKNOWN_COLLECTION_SYMBOL,
            contract_uri=self._read_text(address, "contractURI"),
        )
        mark_created(collection, event)
        self.store.save(collection)
        self.resolver.register_contract(address, ContractFamily.AUCTION_ITEM, event)
        log.info("Created auction item collection %s (%s)", address, collection.name)

    def on_transfer(self, event: ChainEvent) -> None:
        sender = event.address_param("from")
        recipient = event.address_param("to")
        key = TokenKey(event.address, event.uint("tokenId"))

        token = self.store.load(AuctionItemToken, key)
        if token is None:
            token = AuctionItemToken(contract=key.contract, token_id=key.token_id, owner=recipient)
            mark_created(token, event)
            if sender == ZERO_ADDRESS:
                token.minted_tx = event.transaction_hash
                self._count_mint(event)
            else:
                log.warning("First sighting of token %s is a transfer, not a mint", key)
        else:
            token.owner = recipient
            mark_updated(token, event)
        self.store.save(token)

        auction = self.resolver.auction_for_token(key)
        if auction is None:
            return
        if sender != ZERO_ADDRESS and auction.status == AuctionStatus.ACTIVE:
            log.warning(
                "Token %s moved from %s to %s while auction %s is active",
                key,
                sender,
                recipient,
                auction.key,
            )
        if auction.token_reference is None:
            auction.token_reference = key
            mark_updated(auction, event)
            self.store.save(auction)

    def _count_mint(self, event: ChainEvent) -> None:
        collection = self.store.load(AuctionItemCollection, event.address)
        if collection is None:
            return
        collection.total_minted += 1
        mark_updated(collection, event)
        self.store.save(collection)

    def on_token_metadata_updated(self, event: ChainEvent) -> None:
        key = TokenKey(event.address, event.uint("tokenId"))
        metadata = TokenMetadata(
            transaction_hash=event.transaction_hash,
            log_index=event.log_index,
            token=key,
            name=event.text("name", ""),
            description=event.text("description", ""),
            image=event.text("image", ""),
            terms_of_service=event.text("termsOfService", ""),
        )
        mark_created(metadata, event)
        self.store.save(metadata)

        token = self.store.load(AuctionItemToken, key)
        if token is None:
            log.warning("Metadata for unknown token %s stored without a token link", key)
        else:
            token.metadata = metadata.key
            mark_updated(token, event)
            self.store.save(token)

        auction = self.resolver.auction_for_token(key)
        if auction is not None:
            auction.token_metadata = metadata.key
            mark_updated(auction, event)
            self.store.save(auction)

    def _load_collection(self, event: ChainEvent, purpose: str) -> AuctionItemCollection | None:
        collection = self.store.load(AuctionItemCollection, event.address)
        if collection is None:
            log.warning("Auction item collection %s not found for %s", event.address, purpose)
        return collection

    def on_contract_uri_updated(self, event: ChainEvent) -> None:
        collection = self._load_collection(event, "contract URI update")
        if collection is None:
            return
        collection.contract_uri = event.text("newURI", "")
        mark_updated(collection, event)
        self.store.save(collection)

    def on_ownership_changed(self, event: ChainEvent) -> None:
        collection = self._load_collection(event, "ownership change")
        if collection is None:
            return
        collection.owner = event.address_param("newOwner")
        mark_updated(collection, event)
        self.store.save(collection)
