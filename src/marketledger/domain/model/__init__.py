"""Marketplace domain model."""

from __future__ import annotations

from typing import Final

from .attestation import Review, SaleAttestation
from .auction import (
    AUCTION_HOUSE_VERSION,
    Auction,
    AuctionHouse,
    Bid,
    EncryptedMessage,
    PremiumPayment,
)
from .base import Entity, HasEntityType, TrackedEntity
from .bookkeeping import ContractRegistration, IndexEntry, ProcessedEvent
from .curation import Curation, CurationListing, Curator, CuratorAction
from .enums import (
    AuctionStatus,
    ContractFamily,
    CuratorActionKind,
    EntityType,
    EscrowActivityKind,
    EscrowVariant,
    EventKind,
    IndexName,
    ReviewType,
    SourceType,
    StorefrontVariant,
)
from .escrow import ArbiterChange, EscrowActivity, OrderEscrow, OrderPayment
from .primitives import (
    UNLINKED,
    ZERO_ADDRESS,
    Address,
    AuctionKey,
    AuctionLink,
    CurationKey,
    CurationListingKey,
    CuratorKey,
    EntityKey,
    EventKey,
    IndexKey,
    LinkTarget,
    ListingKey,
    OrderLink,
    TokenKey,
    TxHash,
    Unlinked,
)
from .seaport import ConsiderationItem, OfferItem, ReceiptToken, SeaportOrder
from .storefront import Order, Storefront, TokenListing
from .token import (
    UNKNOWN_COLLECTION_NAME,
    UNKNOWN_COLLECTION_SYMBOL,
    AuctionItemCollection,
    AuctionItemToken,
    TokenMetadata,
)

ENTITY_CLASSES: Final[tuple[type[Entity], ...]] = (
    AuctionHouse,
    Auction,
    Bid,
    EncryptedMessage,
    PremiumPayment,
    Storefront,
    TokenListing,
    Order,
    OrderPayment,
    OrderEscrow,
    EscrowActivity,
    ArbiterChange,
    SaleAttestation,
    Review,
    AuctionItemCollection,
    AuctionItemToken,
    TokenMetadata,
    SeaportOrder,
    ReceiptToken,
    Curation,
    Curator,
    CuratorAction,
    CurationListing,
    ContractRegistration,
    IndexEntry,
    ProcessedEvent,
)

CLASS_BY_ENTITY_TYPE: Final[dict[EntityType, type[Entity]]] = {
    cls.ENTITY_TYPE: cls for cls in ENTITY_CLASSES
}

__all__ = [
    "AUCTION_HOUSE_VERSION",
    "CLASS_BY_ENTITY_TYPE",
    "ENTITY_CLASSES",
    "UNKNOWN_COLLECTION_NAME",
    "UNKNOWN_COLLECTION_SYMBOL",
    "UNLINKED",
    "ZERO_ADDRESS",
    "Address",
    "ArbiterChange",
    "Auction",
    "AuctionHouse",
    "AuctionItemCollection",
    "AuctionItemToken",
    "AuctionKey",
    "AuctionLink",
    "AuctionStatus",
    "Bid",
    "ConsiderationItem",
    "ContractFamily",
    "ContractRegistration",
    "Curation",
    "CurationKey",
    "CurationListing",
    "CurationListingKey",
    "Curator",
    "CuratorAction",
    "CuratorActionKind",
    "CuratorKey",
    "EncryptedMessage",
    "Entity",
    "EntityKey",
    "EntityType",
    "EscrowActivity",
    "EscrowActivityKind",
    "EscrowVariant",
    "EventKey",
    "EventKind",
    "HasEntityType",
    "IndexEntry",
    "IndexKey",
    "IndexName",
    "LinkTarget",
    "ListingKey",
    "OfferItem",
    "Order",
    "OrderEscrow",
    "OrderLink",
    "OrderPayment",
    "PremiumPayment",
    "ProcessedEvent",
    "ReceiptToken",
    "Review",
    "ReviewType",
    "SaleAttestation",
    "SeaportOrder",
    "SourceType",
    "Storefront",
    "StorefrontVariant",
    "TokenKey",
    "TokenListing",
    "TokenMetadata",
    "TrackedEntity",
    "TxHash",
    "Unlinked",
]
