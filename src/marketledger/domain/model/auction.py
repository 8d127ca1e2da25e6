"""Auction-house entities: houses, auctions and the records bids leave behind."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Final

from marketledger.domain.model.base import TrackedEntity
from marketledger.domain.model.enums import AuctionStatus, EntityType
from marketledger.domain.model.primitives import (
    Address,
    AuctionKey,
    EventKey,
    TokenKey,
    TxHash,
)

AUCTION_HOUSE_VERSION: Final[str] = "1.0.0"


@dataclass(eq=False, kw_only=True)
class AuctionHouse(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.AUCTION_HOUSE

    address: Address
    owner: Address
    name: str = ""
    image: str = ""
    description: str = ""
    contract_uri: str = ""
    symbol: str = ""
    settlement_deadline: int = 0
    version: str = AUCTION_HOUSE_VERSION

    @property
    def key(self) -> Address:
        return self.address


@dataclass(eq=False, kw_only=True)
class Auction(TrackedEntity):
    """One auction of one token on one auction house.

    ``highest_bid_amount`` only ever moves up: a bid displaces the incumbent when it is
    strictly greater. ``current_winning_bid`` names the single bid carrying
    ``is_winning_bid``.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.AUCTION

    house: Address
    auction_id: int
    token_contract: Address
    token_id: int
    duration: int = 0
    reserve_price: int = 0
    affiliate_fee_bps: int = 0
    owner: Address
    arbiter: Address
    escrow_address: Address | None = None
    is_premium_auction: bool = False

    # Backfilled from the house contract; zero/empty when the read fails
    highest_bid: int = 0
    start_time: int = 0
    end_time: int = 0
    currency: str = ""
    min_bid_increment_bps: int = 0
    premium_bps: int = 0
    time_extension: int = 0
    payment_amount: int = 0

    status: AuctionStatus = AuctionStatus.CREATED
    highest_bid_amount: int = 0
    current_bidder: Address | None = None
    current_affiliate: Address | None = None
    current_winning_bid: EventKey | None = None
    total_bid_count: int = 0
    total_premium_paid: int = 0
    was_extended: bool = False
    extension_count: int = 0

    winner: Address | None = None
    ended_at: int | None = None
    ended_at_block: int | None = None
    end_tx: TxHash | None = None

    escrow: Address | None = None
    token_reference: TokenKey | None = None
    token_metadata: EventKey | None = None
    token_uri: str | None = None
    latest_attestation: str | None = None

    @property
    def key(self) -> AuctionKey:
        return AuctionKey(self.house, self.auction_id)

    @property
    def token_key(self) -> TokenKey:
        return TokenKey(self.token_contract, self.token_id)

    def can_move_to(self, target: AuctionStatus) -> bool:
        """Backward moves are never allowed; terminal states may replace one another."""
        return target.rank >= self.status.rank

    def move_to(self, target: AuctionStatus) -> bool:
        if not self.can_move_to(target):
            return False
        self.status = target
        return True


@dataclass(eq=False, kw_only=True)
class Bid(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.BID

    transaction_hash: TxHash
    log_index: int
    auction: AuctionKey
    bidder: Address
    amount: int
    affiliate: Address | None = None
    is_winning_bid: bool = False
    encrypted_message: EventKey | None = None

    @property
    def key(self) -> EventKey:
        return EventKey(self.transaction_hash, self.log_index)


@dataclass(eq=False, kw_only=True)
class EncryptedMessage(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ENCRYPTED_MESSAGE

    transaction_hash: TxHash
    log_index: int
    auction: AuctionKey
    bidder: Address
    encrypted_data: str = ""
    ephemeral_public_key: str = ""
    iv: str = ""
    verification_hash: str = ""
    is_final: bool = False

    @property
    def key(self) -> EventKey:
        return EventKey(self.transaction_hash, self.log_index)


@dataclass(eq=False, kw_only=True)
class PremiumPayment(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.PREMIUM_PAYMENT

    transaction_hash: TxHash
    log_index: int
    auction: AuctionKey
    outbid_user: Address
    new_bidder: Address
    original_bid: int
    premium_amount: int

    @property
    def key(self) -> EventKey:
        return EventKey(self.transaction_hash, self.log_index)
