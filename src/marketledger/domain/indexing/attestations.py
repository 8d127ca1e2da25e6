"""Sale attestations and reviews, and the storefront rating aggregates they feed."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from marketledger.domain.indexing.context import mark_created, mark_updated
from marketledger.domain.model import (
    Auction,
    AuctionLink,
    Order,
    OrderEscrow,
    OrderLink,
    Review,
    ReviewType,
    SaleAttestation,
    Storefront,
)

if TYPE_CHECKING:
    from marketledger.domain.events import ChainEvent
    from marketledger.domain.indexing.links import CrossReferenceResolver
    from marketledger.domain.ports import EntityStore

log = getLogger(__name__)


class AttestationLinker:
    """Owns SaleAttestation and Review records.

    Attestations are always stored, linked to an order when one matches the attested
    transaction, otherwise to the auction behind the named escrow, otherwise to nothing.
    """

    def __init__(self, store: EntityStore, resolver: CrossReferenceResolver) -> None:
        self.store = store
        self.resolver = resolver

    def on_sale_attested(self, event: ChainEvent) -> None:
        attestation = SaleAttestation(
            uid=event.text("uid").lower(),
            sale_transaction_hash=event.text("transactionHash").lower(),
            buyer=event.address_param("buyer"),
            seller=event.address_param("seller"),
            escrow_contract=event.address_param("escrowContract"),
            storefront_contract=event.address_param("storefrontContract"),
            timestamp=event.block_timestamp,
        )
        mark_created(attestation, event)

        order = self.store.load(Order, attestation.sale_transaction_hash)
        if order is not None:
            self._attach_to_order(attestation, order, event)
        else:
            auction = self._auction_behind_escrow(attestation.escrow_contract)
            if auction is not None:
                self._attach_to_auction(attestation, auction)
            else:
                attestation.storefront = attestation.storefront_contract
                log.warning(
                    "No order or auction found for attestation %s (sale tx %s); "
                    "storing it unlinked",
                    attestation.uid,
                    attestation.sale_transaction_hash,
                )

        self.store.save(attestation)
        log.info(
            "Stored sale attestation %s: buyer %s, seller %s, latest %s",
            attestation.uid,
            attestation.buyer,
            attestation.seller,
            attestation.is_latest,
        )

    def _attach_to_order(
        self, attestation: SaleAttestation, order: Order, event: ChainEvent
    ) -> None:
        attestation.target = OrderLink(order.transaction_hash)
        attestation.storefront = order.storefront
        if self.resolver.promote_attestation(attestation, order):
            self.resolver.correct_order_buyer(order, attestation)
        mark_updated(order, event)
        self.store.save(order)

        escrow = self.store.load(OrderEscrow, attestation.escrow_contract)
        if escrow is None:
            log.warning(
                "Escrow %s named by attestation %s is unknown",
                attestation.escrow_contract,
                attestation.uid,
            )
        elif not escrow.is_linked:
            self.resolver.link_escrow_to_order(escrow, order)
        elif escrow.order != order.transaction_hash:
            log.warning(
                "Escrow %s named by attestation %s belongs elsewhere (%s)",
                escrow.address,
                attestation.uid,
                escrow.link,
            )

    def _auction_behind_escrow(self, escrow_address: str) -> Auction | None:
        escrow = self.store.load(OrderEscrow, escrow_address)
        if escrow is not None and escrow.auction is not None:
            return self.resolver.linked_auction(escrow)
        return self.resolver.auction_for_escrow(escrow_address)

    def _attach_to_auction(self, attestation: SaleAttestation, auction: Auction) -> None:
        attestation.target = AuctionLink(auction.key)
        self.resolver.promote_attestation(attestation, auction)
        self.store.save(auction)

    def on_review_submitted(self, event: ChainEvent) -> None:
        sale_uid = event.text("saleUID").lower()
        attestation = self.store.load(SaleAttestation, sale_uid)
        if attestation is None:
            log.warning("Sale attestation %s not found for review", sale_uid)
            return

        uid = event.text("reviewUID").lower()
        if self.store.load(Review, uid) is not None:
            log.warning("Review %s already recorded; ignoring resubmission", uid)
            return

        reviewer = event.address_param("reviewer")
        review = Review(
            uid=uid,
            sale_attestation=sale_uid,
            reviewer=reviewer,
            recipient=event.address_param("recipient"),
            review_type=ReviewType.BUYER if reviewer == attestation.buyer else ReviewType.SELLER,
            storefront=attestation.storefront,
            overall_rating=event.uint("overallRating"),
            quality_rating=event.optional_uint("qualityRating"),
            communication_rating=event.optional_uint("communicationRating"),
            delivery_rating=event.optional_uint("deliveryRating"),
            packaging_rating=event.optional_uint("packagingRating"),
            as_described=event.optional_flag("asDescribed"),
            review_text=event.text("reviewText", ""),
        )
        mark_created(review, event)
        self.store.save(review)

        if review.review_type == ReviewType.BUYER:
            self._aggregate(review, attestation, event)
        log.info(
            "Stored %s review %s for sale %s, rating %s",
            review.review_type,
            uid,
            sale_uid,
            review.overall_rating,
        )

    def _aggregate(
        self, review: Review, attestation: SaleAttestation, event: ChainEvent
    ) -> None:
        # TODO: aggregate auction-house ratings once AuctionHouse carries rating counters.
        if not isinstance(attestation.target, OrderLink):
            log.debug("Review %s is not for a storefront order; no aggregate update", review.uid)
            return
        if review.storefront is None:
            return
        storefront = self.store.load(Storefront, review.storefront)
        if storefront is None:
            log.warning("Storefront %s not found for review %s", review.storefront, review.uid)
            return
        storefront.total_rating += review.overall_rating
        storefront.review_count += 1
        mark_updated(storefront, event)
        self.store.save(storefront)
        log.info(
            "Storefront %s rating total %s over %s reviews",
            storefront.address,
            storefront.total_rating,
            storefront.review_count,
        )
