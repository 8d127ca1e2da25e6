"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Typed-record discriminator; also the keyspace name inside an entity store."""

    AUCTION_HOUSE = "auction_house"
    AUCTION = "auction"
    BID = "bid"
    ENCRYPTED_MESSAGE = "encrypted_message"
    PREMIUM_PAYMENT = "premium_payment"

    STOREFRONT = "storefront"
    TOKEN_LISTING = "token_listing"
    ORDER = "order"
    ORDER_PAYMENT = "order_payment"

    ORDER_ESCROW = "order_escrow"
    ESCROW_ACTIVITY = "escrow_activity"
    ARBITER_CHANGE = "arbiter_change"

    SALE_ATTESTATION = "sale_attestation"
    REVIEW = "review"

    AUCTION_ITEM_COLLECTION = "auction_item_collection"
    AUCTION_ITEM_TOKEN = "auction_item_token"
    TOKEN_METADATA = "token_metadata"

    SEAPORT_ORDER = "seaport_order"
    RECEIPT_TOKEN = "receipt_token"

    CURATION = "curation"
    CURATOR = "curator"
    CURATOR_ACTION = "curator_action"
    CURATION_LISTING = "curation_listing"

    # Bookkeeping:
    CONTRACT_REGISTRATION = "contract_registration"
    INDEX_ENTRY = "index_entry"
    PROCESSED_EVENT = "processed_event"


class ContractFamily(StrEnum):
    AUCTION_HOUSE_FACTORY = "auction_house_factory"
    AUCTION_HOUSE = "auction_house"

    ESCROW_FACTORY = "escrow_factory"
    AFFILIATE_ESCROW_FACTORY = "affiliate_escrow_factory"
    ESCROW = "escrow"
    AFFILIATE_ESCROW = "affiliate_escrow"

    STOREFRONT_FACTORY = "storefront_factory"
    STOREFRONT_FACTORY_V2 = "storefront_factory_v2"
    AFFILIATE_STOREFRONT_FACTORY = "affiliate_storefront_factory"
    STOREFRONT = "storefront"
    STOREFRONT_V2 = "storefront_v2"
    AFFILIATE_STOREFRONT = "affiliate_storefront"

    AUCTION_ITEM_FACTORY = "auction_item_factory"
    AUCTION_ITEM = "auction_item"

    ATTESTATION = "attestation"

    SEAPORT = "seaport"
    CURATION_STOREFRONT = "curation_storefront"


class EventKind(StrEnum):
    # Auction house
    AUCTION_CREATED = "AuctionCreated"
    BID_CREATED = "BidCreated"
    AUCTION_ENCRYPTED_MESSAGE = "AuctionEncryptedMessage"
    PREMIUM_PAID = "PremiumPaid"
    AUCTION_EXTENDED = "AuctionExtended"
    AUCTION_ENDED = "AuctionEnded"
    AUCTION_CANCELLED = "AuctionCancelled"
    AUCTION_HOUSE_METADATA_UPDATED = "AuctionHouseMetadataUpdated"
    SETTLEMENT_DEADLINE_UPDATED = "SettlementDeadlineUpdated"

    # Escrow (simple and affiliate)
    PAYER_SET = "PayerSet"
    SETTLED = "Settled"
    REFUNDED = "Refunded"
    DISPUTED = "Disputed"
    DISPUTE_REMOVED = "DisputeRemoved"
    DISPUTE_RESOLVED = "DisputeResolved"
    ESCAPE_ADDRESS_SET = "EscapeAddressSet"
    ESCAPED = "Escaped"
    ARBITER_CHANGE_PROPOSED = "ArbiterChangeProposed"
    ARBITER_CHANGE_APPROVED = "ArbiterChangeApproved"

    # Storefront (simple, V2, affiliate)
    STOREFRONT_ORDER_FULFILLED = "StorefrontOrderFulfilled"
    LISTING_ADDED = "ListingAdded"
    LISTING_UPDATED = "ListingUpdated"
    LISTING_REMOVED = "ListingRemoved"
    READY_STATE_CHANGED = "ReadyStateChanged"
    SETTLE_DEADLINE_UPDATED = "SettleDeadlineUpdated"
    ERC1155_TOKEN_ADDRESS_CHANGED = "ERC1155TokenAddressChanged"

    # Auction item ERC721
    TRANSFER = "Transfer"
    TOKEN_METADATA_UPDATED = "TokenMetadataUpdated"
    CONTRACT_URI_UPDATED = "ContractURIUpdated"
    OWNERSHIP_CHANGED = "OwnershipChanged"

    # Factories
    AUCTION_HOUSE_CREATED = "AuctionHouseCreated"
    ESCROW_CREATED = "EscrowCreated"
    AFFILIATE_ESCROW_CREATED = "AffiliateEscrowCreated"
    STOREFRONT_CREATED = "StorefrontCreated"
    AUCTION_ITEM_CREATED = "AuctionItemERC721Created"

    # Attestation resolvers
    SALE_ATTESTED = "SaleAttested"
    REVIEW_SUBMITTED = "ReviewSubmitted"

    # Seaport
    ORDER_FULFILLED = "OrderFulfilled"

    # Curation storefront (ListingUpdated and Transfer are shared with other families)
    CURATION_CREATED = "CurationCreated"
    CURATOR_ADDED = "CuratorAdded"
    CURATOR_REMOVED = "CuratorRemoved"
    LISTING_CURATED = "ListingCurated"
    PAYMENT_ADDRESS_UPDATED = "PaymentAddressUpdated"
    METADATA_UPDATED = "MetadataUpdated"


class AuctionStatus(StrEnum):
    CREATED = "CREATED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def rank(self) -> int:
        """Lifecycle position; the two terminal states share a rank."""
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (AuctionStatus.COMPLETED, AuctionStatus.CANCELLED)


_STATUS_RANK: dict[AuctionStatus, int] = {
    AuctionStatus.CREATED: 0,
    AuctionStatus.ACTIVE: 1,
    AuctionStatus.COMPLETED: 2,
    AuctionStatus.CANCELLED: 2,
}


class SourceType(StrEnum):
    STOREFRONT = "STOREFRONT"
    AUCTION_HOUSE = "AUCTION_HOUSE"


class EscrowVariant(StrEnum):
    SIMPLE = "simple"
    AFFILIATE = "affiliate"


class StorefrontVariant(StrEnum):
    SIMPLE = "simple"
    V2 = "v2"
    AFFILIATE = "affiliate"


class EscrowActivityKind(StrEnum):
    SETTLED = "settled"
    REFUNDED = "refunded"
    DISPUTED = "disputed"
    DISPUTE_REMOVED = "dispute_removed"
    DISPUTE_RESOLVED = "dispute_resolved"
    ESCAPE_ADDRESS_SET = "escape_address_set"
    ESCAPED = "escaped"


class CuratorActionKind(StrEnum):
    ADDED = "ADDED"
    REMOVED = "REMOVED"


class ReviewType(StrEnum):
    BUYER = "buyer"
    SELLER = "seller"


class IndexName(StrEnum):
    """Secondary indexes maintained alongside the entity set."""

    TOKEN_AUCTION = "token_auction"
    TRANSACTION_ESCROW = "transaction_escrow"
    ESCROW_AUCTION = "escrow_auction"
    ESCROW_ORDER = "escrow_order"
