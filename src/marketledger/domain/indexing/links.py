"""Cross-references the contracts never state: escrow <-> order/auction, token -> auction.

Links are established from whichever side arrives second. The side that arrives first
leaves an :class:`IndexEntry` behind so the other side can find it without scanning.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from marketledger.domain.model import (
    Auction,
    AuctionHouse,
    AuctionKey,
    AuctionLink,
    ContractRegistration,
    IndexEntry,
    IndexKey,
    IndexName,
    Order,
    OrderEscrow,
    OrderLink,
    SaleAttestation,
    SourceType,
    Storefront,
    TokenKey,
)

if TYPE_CHECKING:
    from marketledger.domain.events import ChainEvent
    from marketledger.domain.model import Address, ContractFamily, TxHash
    from marketledger.domain.ports import EntityStore

log = getLogger(__name__)


class CrossReferenceResolver:
    def __init__(self, store: EntityStore) -> None:
        self.store = store

    # Secondary indexes -------------------------------------------------------

    def put_index(
        self,
        index: IndexName,
        lookup: tuple[str | int, ...],
        target: tuple[str | int, ...],
    ) -> None:
        existing = self.store.load(IndexEntry, IndexKey(index, lookup))
        if existing is not None and existing.target != target:
            log.info("Index %s%s moves from %s to %s", index, lookup, existing.target, target)
        self.store.save(IndexEntry(index=index, lookup=lookup, target=target))

    def get_index(
        self, index: IndexName, lookup: tuple[str | int, ...]
    ) -> tuple[str | int, ...] | None:
        entry = self.store.load(IndexEntry, IndexKey(index, lookup))
        return entry.target if entry is not None else None

    def index_auction(self, auction: Auction) -> None:
        """Register ``auction`` under its token and, when announced, its escrow address.

        A later auction for the same token replaces the earlier one.
        """

        self.put_index(IndexName.TOKEN_AUCTION, tuple(auction.token_key), tuple(auction.key))
        if auction.escrow_address is not None:
            self.put_index(
                IndexName.ESCROW_AUCTION, (auction.escrow_address,), tuple(auction.key)
            )

    def index_escrow_transaction(self, escrow: OrderEscrow, transaction_hash: TxHash) -> None:
        self.put_index(IndexName.TRANSACTION_ESCROW, (transaction_hash,), (escrow.address,))

    def index_order_escrow(self, order: Order, escrow_address: Address) -> None:
        self.put_index(IndexName.ESCROW_ORDER, (escrow_address,), (order.transaction_hash,))

    def auction_for_token(self, token: TokenKey) -> Auction | None:
        target = self.get_index(IndexName.TOKEN_AUCTION, tuple(token))
        if target is None:
            return None
        return self._load_auction(target)

    def auction_for_escrow(self, escrow_address: Address) -> Auction | None:
        target = self.get_index(IndexName.ESCROW_AUCTION, (escrow_address,))
        if target is None:
            return None
        return self._load_auction(target)

    def order_for_escrow(self, escrow_address: Address) -> Order | None:
        target = self.get_index(IndexName.ESCROW_ORDER, (escrow_address,))
        if target is None:
            return None
        return self.store.load(Order, str(target[0]))

    def escrow_for_transaction(self, transaction_hash: TxHash) -> OrderEscrow | None:
        target = self.get_index(IndexName.TRANSACTION_ESCROW, (transaction_hash,))
        if target is None:
            return None
        return self.store.load(OrderEscrow, str(target[0]))

    def _load_auction(self, target: tuple[str | int, ...]) -> Auction | None:
        house, auction_id = target
        return self.store.load(Auction, AuctionKey(str(house), int(auction_id)))

    def linked_auction(self, escrow: OrderEscrow) -> Auction | None:
        key = escrow.auction
        if key is None:
            return None
        auction = self.store.load(Auction, key)
        if auction is None:
            log.warning("Escrow %s links to unknown auction %s", escrow.address, key)
        return auction

    # Contract families ---------------------------------------------------------

    def register_contract(
        self, address: Address, family: ContractFamily, event: ChainEvent
    ) -> None:
        self.store.save(
            ContractRegistration(
                address=address,
                family=family,
                registered_by=event.address,
                registered_at_block=event.block_number,
            )
        )
        log.debug("Registered %s as %s", address, family)

    def registered_family(self, address: Address) -> ContractFamily | None:
        registration = self.store.load(ContractRegistration, address)
        return registration.family if registration is not None else None

    # Escrow classification and linking ---------------------------------------

    def classify_source(self, source_address: Address) -> tuple[SourceType, bool]:
        """Return the source type of an escrow and whether it had to be defaulted."""

        if self.store.load(Storefront, source_address) is not None:
            return SourceType.STOREFRONT, False
        if self.store.load(AuctionHouse, source_address) is not None:
            return SourceType.AUCTION_HOUSE, False
        log.warning(
            "Escrow source %s is neither a known storefront nor auction house; "
            "defaulting to %s",
            source_address,
            SourceType.STOREFRONT,
        )
        return SourceType.STOREFRONT, True

    def link_escrow_to_order(self, escrow: OrderEscrow, order: Order) -> bool:
        """Point ``escrow`` and ``order`` at each other and save both.

        Refused when the escrow already belongs to a different order or to an auction.
        """

        link = escrow.link
        if isinstance(link, AuctionLink):
            log.warning(
                "Escrow %s is linked to auction %s; not linking order %s",
                escrow.address,
                link.auction,
                order.transaction_hash,
            )
            return False
        if isinstance(link, OrderLink) and link.order != order.transaction_hash:
            log.warning(
                "Escrow %s is linked to order %s; not relinking to %s",
                escrow.address,
                link.order,
                order.transaction_hash,
            )
            return False
        escrow.link = OrderLink(order.transaction_hash)
        order.escrow_contract = escrow.address
        self.store.save(escrow)
        self.store.save(order)
        log.info("Linked escrow %s to order %s", escrow.address, order.transaction_hash)
        return True

    def link_escrow_to_auction(self, escrow: OrderEscrow, auction: Auction) -> None:
        """Point ``escrow`` and ``auction`` at each other and save both.

        The auction named this escrow itself, so the link wins over any earlier guess,
        and the escrow is reclassified as an auction-house escrow.
        """

        link = escrow.link
        if isinstance(link, OrderLink):
            log.warning(
                "Escrow %s was linked to order %s; relinking to auction %s",
                escrow.address,
                link.order,
                auction.key,
            )
        if escrow.source_type != SourceType.AUCTION_HOUSE:
            log.info(
                "Reclassifying escrow %s from %s to %s",
                escrow.address,
                escrow.source_type,
                SourceType.AUCTION_HOUSE,
            )
            escrow.source_type = SourceType.AUCTION_HOUSE
        escrow.source_type_defaulted = False
        escrow.link = AuctionLink(auction.key)
        auction.escrow = escrow.address
        self.store.save(escrow)
        self.store.save(auction)
        if not isinstance(link, AuctionLink) or link.auction != auction.key:
            log.info("Linked escrow %s to auction %s", escrow.address, auction.key)

    # Attestations --------------------------------------------------------------

    def promote_attestation(self, attestation: SaleAttestation, holder: Order | Auction) -> bool:
        """Make ``attestation`` the latest for ``holder`` unless a newer one is already there.

        Ties on block timestamp go to the attestation processed later. Does not save
        ``attestation`` or ``holder``; the previous latest attestation is saved here.
        """

        current_uid = holder.latest_attestation
        if current_uid is not None and current_uid != attestation.uid:
            current = self.store.load(SaleAttestation, current_uid)
            if current is not None:
                if current.timestamp > attestation.timestamp:
                    attestation.is_latest = False
                    return False
                current.is_latest = False
                self.store.save(current)
        attestation.is_latest = True
        holder.latest_attestation = attestation.uid
        return True

    def correct_order_buyer(self, order: Order, attestation: SaleAttestation) -> bool:
        if order.buyer == attestation.buyer:
            return False
        log.warning(
            "Buyer mismatch on order %s: order has %s, attestation %s has %s; using attestation",
            order.transaction_hash,
            order.buyer,
            attestation.uid,
            attestation.buyer,
        )
        if order.original_buyer is None:
            order.original_buyer = order.buyer
        order.buyer = attestation.buyer
        return True
