"""Auction house lifecycle: houses, auctions, bids, encrypted messages, premiums."""

from __future__ import annotations

from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from marketledger.domain.events import normalize_address, normalize_uint
from marketledger.domain.indexing.context import mark_created, mark_updated
from marketledger.domain.model import (
    ZERO_ADDRESS,
    Auction,
    AuctionHouse,
    AuctionItemToken,
    AuctionKey,
    AuctionStatus,
    Bid,
    ContractFamily,
    EncryptedMessage,
    EscrowVariant,
    OrderEscrow,
    PremiumPayment,
    SourceType,
)
from marketledger.domain.ports.contracts import ReadFailed

if TYPE_CHECKING:
    from marketledger.domain.events import ChainEvent
    from marketledger.domain.indexing.links import CrossReferenceResolver
    from marketledger.domain.ports import ContractReader, EntityStore

log = getLogger(__name__)

AUCTION_DATA_FUNCTION: Final[str] = "getAuctionData"
TOKEN_URI_FUNCTION: Final[str] = "tokenURI"


class AuctionStateMachine:
    """Owns Auction, Bid, EncryptedMessage and PremiumPayment records.

    Status only moves forward (CREATED -> ACTIVE -> COMPLETED | CANCELLED). Handlers
    addressed to an unknown auction or house log a warning and change nothing.
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

    # Auction houses ------------------------------------------------------------

    def on_auction_house_created(self, event: ChainEvent) -> None:
        address = event.address_param("auctionHouse")
        house = AuctionHouse(
            address=address,
            owner=event.address_param("owner"),
            name=event.text("name", ""),
            image=event.text("image", ""),
            description=event.text("description", ""),
            contract_uri=event.text("contractURI", ""),
            symbol=event.text("symbol", ""),
            settlement_deadline=event.optional_uint("settlementDeadline"),
        )
        mark_created(house, event)
        self.store.save(house)
        self.resolver.register_contract(address, ContractFamily.AUCTION_HOUSE, event)
        log.info("Created auction house %s (%s), owner %s", address, house.name, house.owner)

    def on_auction_house_metadata_updated(self, event: ChainEvent) -> None:
        address = event.address_param("auctionHouse")
        house = self.store.load(AuctionHouse, address)
        if house is None:
            log.warning("Auction house %s not found for metadata update", address)
            return
        house.name = event.text("name", "")
        house.image = event.text("image", "")
        house.description = event.text("description", "")
        mark_updated(house, event)
        self.store.save(house)

    def on_settlement_deadline_updated(self, event: ChainEvent) -> None:
        house = self.store.load(AuctionHouse, event.address)
        if house is None:
            log.warning("Auction house %s not found for settlement deadline update", event.address)
            return
        house.settlement_deadline = event.uint("newDeadline")
        mark_updated(house, event)
        self.store.save(house)

    # Auctions --------------------------------------------------------------------

    def _auction_key(self, event: ChainEvent) -> AuctionKey:
        return AuctionKey(event.address, event.uint("auctionId"))

    def _load_auction(self, event: ChainEvent, purpose: str) -> Auction | None:
        key = self._auction_key(event)
        auction = self.store.load(Auction, key)
        if auction is None:
            log.warning("Auction %s not found for %s", key, purpose)
        return auction

    def on_auction_created(self, event: ChainEvent) -> None:
        if self.store.load(AuctionHouse, event.address) is None:
            log.warning("Auction house %s not found for auction creation", event.address)
            return

        key = self._auction_key(event)
        auction = Auction(
            house=key.house,
            auction_id=key.auction_id,
            token_contract=event.address_param("tokenContract"),
            token_id=event.uint("tokenId"),
            duration=event.uint("duration"),
            reserve_price=event.uint("reservePrice"),
            affiliate_fee_bps=event.optional_uint("affiliateFee"),
            owner=event.address_param("auctionOwner"),
            arbiter=event.address_param("arbiter"),
            escrow_address=event.optional_address("escrowAddress"),
            is_premium_auction=event.optional_flag("isPremiumAuction"),
        )
        self._backfill_auction_data(auction)
        self._attach_token(auction)
        mark_created(auction, event)
        self.store.save(auction)

        self.resolver.index_auction(auction)
        if auction.escrow_address is not None:
            escrow = self.store.load(OrderEscrow, auction.escrow_address)
            if escrow is not None:
                self.resolver.link_escrow_to_auction(escrow, auction)

        log.info(
            "Created auction %s, token %s, reserve %s, premium %s",
            key,
            auction.token_key,
            auction.reserve_price,
            auction.is_premium_auction,
        )

    def _backfill_auction_data(self, auction: Auction) -> None:
        """Copy timing, currency and fee parameters from the house contract.

        A failed read leaves the zero/empty defaults: the auction exists but is
        financially unconfigured.
        """

        result = self.reader.read(auction.house, AUCTION_DATA_FUNCTION, auction.auction_id)
        if isinstance(result, ReadFailed):
            log.warning(
                "Could not read auction data for %s; using defaults (%s)",
                auction.key,
                result.reason,
            )
            return
        try:
            parsed = _parse_auction_data(result.value)
        except (KeyError, TypeError, ValueError) as exc:
            log.warning("Unusable auction data for %s (%s); using defaults", auction.key, exc)
            return
        auction.highest_bid = parsed["highest_bid"]
        auction.start_time = parsed["start_time"]
        auction.end_time = parsed["start_time"] + auction.duration
        auction.currency = parsed["currency"]
        auction.min_bid_increment_bps = parsed["min_bid_increment_bps"]
        auction.premium_bps = parsed["premium_bps"]
        auction.time_extension = parsed["time_extension"]
        auction.payment_amount = parsed["payment_amount"]

    def _attach_token(self, auction: Auction) -> None:
        token = self.store.load(AuctionItemToken, auction.token_key)
        if token is not None:
            auction.token_reference = token.key
            auction.token_metadata = token.metadata
        if auction.token_contract == ZERO_ADDRESS:
            return
        uri = self.reader.read(auction.token_contract, TOKEN_URI_FUNCTION, auction.token_id)
        value = uri.value_or(None)
        if isinstance(value, str) and value:
            auction.token_uri = value

    def on_bid_created(self, event: ChainEvent) -> None:
        auction = self._load_auction(event, "bid")
        if auction is None:
            return

        amount = event.uint("bidAmount")
        bidder = event.address_param("bidder")
        affiliate = event.optional_address("affiliate")

        message = self._message_from(event, auction.key, bidder)
        bid = Bid(
            transaction_hash=event.transaction_hash,
            log_index=event.log_index,
            auction=auction.key,
            bidder=bidder,
            amount=amount,
            affiliate=affiliate,
            encrypted_message=message.key,
        )
        mark_created(bid, event)

        if auction.status.is_terminal:
            log.warning("Bid %s arrived for %s auction %s", bid.key, auction.status, auction.key)

        if amount > auction.highest_bid_amount:
            self._displace_winning_bid(auction)
            bid.is_winning_bid = True
            auction.highest_bid_amount = amount
            auction.highest_bid = amount
            auction.current_bidder = bidder
            auction.current_affiliate = affiliate
            auction.current_winning_bid = bid.key

        auction.total_bid_count += 1
        if auction.total_bid_count == 1 and auction.status == AuctionStatus.CREATED:
            auction.move_to(AuctionStatus.ACTIVE)
        mark_updated(auction, event)

        self.store.save(message)
        self.store.save(bid)
        self.store.save(auction)
        log.info(
            "Bid on auction %s: bidder %s, amount %s, winning %s",
            auction.key,
            bidder,
            amount,
            bid.is_winning_bid,
        )

    def _displace_winning_bid(self, auction: Auction) -> None:
        if auction.current_winning_bid is None:
            return
        previous = self.store.load(Bid, auction.current_winning_bid)
        if previous is None:
            log.warning(
                "Winning bid %s of auction %s is missing", auction.current_winning_bid, auction.key
            )
            return
        previous.is_winning_bid = False
        self.store.save(previous)

    def _message_from(
        self, event: ChainEvent, auction: AuctionKey, bidder: str
    ) -> EncryptedMessage:
        message = EncryptedMessage(
            transaction_hash=event.transaction_hash,
            log_index=event.log_index,
            auction=auction,
            bidder=bidder,
            encrypted_data=event.text("encryptedData", ""),
            ephemeral_public_key=event.text("ephemeralPublicKey", ""),
            iv=event.text("iv", ""),
            verification_hash=event.text("verificationHash", ""),
            is_final=event.optional_flag("isFinal"),
        )
        mark_created(message, event)
        return message

    def on_encrypted_message(self, event: ChainEvent) -> None:
        auction = self._load_auction(event, "encrypted message")
        if auction is None:
            return
        message = self._message_from(event, auction.key, event.address_param("bidder"))
        self.store.save(message)
        log.info(
            "Encrypted message for auction %s from %s, final %s",
            auction.key,
            message.bidder,
            message.is_final,
        )

    def on_premium_paid(self, event: ChainEvent) -> None:
        auction = self._load_auction(event, "premium payment")
        if auction is None:
            return
        premium = PremiumPayment(
            transaction_hash=event.transaction_hash,
            log_index=event.log_index,
            auction=auction.key,
            outbid_user=event.address_param("outbidUser"),
            new_bidder=event.address_param("newBidder"),
            original_bid=event.uint("originalBid"),
            premium_amount=event.uint("premiumAmount"),
        )
        mark_created(premium, event)
        auction.total_premium_paid += premium.premium_amount
        mark_updated(auction, event)
        self.store.save(premium)
        self.store.save(auction)

    def on_auction_extended(self, event: ChainEvent) -> None:
        auction = self._load_auction(event, "extension")
        if auction is None:
            return
        auction.end_time = event.uint("newEndTime")
        auction.was_extended = True
        auction.extension_count += 1
        mark_updated(auction, event)
        self.store.save(auction)
        log.info(
            "Auction %s extended to %s (%s extensions)",
            auction.key,
            auction.end_time,
            auction.extension_count,
        )

    def on_auction_ended(self, event: ChainEvent) -> None:
        auction = self._load_auction(event, "end")
        if auction is None:
            return

        winner = event.address_param("winner")
        final_amount = event.uint("finalAmount")
        affiliate = event.optional_address("affiliate")

        if not auction.move_to(AuctionStatus.COMPLETED):
            log.warning("Ignoring end of auction %s in status %s", auction.key, auction.status)
        auction.winner = winner
        auction.payment_amount = final_amount
        self._mark_ended(auction, event)

        if auction.escrow_address is not None:
            self._settle_into_escrow(auction, auction.escrow_address, affiliate, event)

        token = self.store.load(AuctionItemToken, auction.token_key)
        if token is not None:
            token.owner = winner
            mark_updated(token, event)
            self.store.save(token)
            auction.token_reference = token.key

        self.store.save(auction)
        log.info(
            "Auction %s ended: winner %s, final amount %s, affiliate %s",
            auction.key,
            winner,
            final_amount,
            affiliate or "none",
        )

    def _settle_into_escrow(
        self,
        auction: Auction,
        escrow_address: str,
        affiliate: str | None,
        event: ChainEvent,
    ) -> None:
        escrow = self.store.load(OrderEscrow, escrow_address)
        if escrow is None:
            escrow = OrderEscrow(
                address=escrow_address,
                payee=auction.owner,
                source_address=auction.house,
                source_type=SourceType.AUCTION_HOUSE,
                arbiter=auction.arbiter,
                variant=EscrowVariant.SIMPLE,
            )
            mark_created(escrow, event)
            log.info("Created escrow %s for auction %s", escrow.address, auction.key)
        if escrow.affiliate_confirmed:
            log.debug("Keeping settled affiliate of escrow %s", escrow.address)
        else:
            escrow.affiliate = affiliate
            escrow.affiliate_share = 0
        mark_updated(escrow, event)
        self.resolver.link_escrow_to_auction(escrow, auction)

    def on_auction_cancelled(self, event: ChainEvent) -> None:
        auction = self._load_auction(event, "cancellation")
        if auction is None:
            return
        if not auction.move_to(AuctionStatus.CANCELLED):
            log.warning("Ignoring cancellation of auction %s", auction.key)
        self._mark_ended(auction, event)
        self.store.save(auction)
        log.info("Auction %s cancelled by %s", auction.key, event.optional_address("owner"))

    @staticmethod
    def _mark_ended(auction: Auction, event: ChainEvent) -> None:
        auction.ended_at = event.block_timestamp
        auction.ended_at_block = event.block_number
        auction.end_tx = event.transaction_hash
        mark_updated(auction, event)


def _parse_auction_data(data: Any) -> dict[str, Any]:
    """Pull the fields we keep out of a ``getAuctionData`` result."""

    if not isinstance(data, Mapping):
        raise TypeError(f"expected a mapping, got {type(data).__name__}")
    currency = data.get("auctionCurrency")
    return {
        "highest_bid": normalize_uint(data["highestBid"]),
        "start_time": normalize_uint(data["startTime"]),
        "currency": normalize_address(currency) if currency else "",
        "min_bid_increment_bps": normalize_uint(data["minBidIncrementBps"]),
        "premium_bps": normalize_uint(data["premiumBps"]),
        "time_extension": normalize_uint(data["timeExtension"]),
        "payment_amount": normalize_uint(data["paymentAmount"]),
    }
