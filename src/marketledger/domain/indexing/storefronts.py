"""Direct-sale storefronts: factories, orders, listings and storefront settings."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from marketledger.domain.events import normalize_address, normalize_flag, normalize_uint
from marketledger.domain.indexing.context import mark_created, mark_updated
from marketledger.domain.model import (
    ZERO_ADDRESS,
    ContractFamily,
    ListingKey,
    Order,
    OrderEscrow,
    OrderPayment,
    Storefront,
    StorefrontVariant,
    TokenListing,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from marketledger.domain.events import ChainEvent
    from marketledger.domain.indexing.links import CrossReferenceResolver
    from marketledger.domain.ports import ContractReader, EntityStore

log = getLogger(__name__)

CONTRACT_URI_FUNCTION: Final[str] = "contractURI"
TOKEN_URI_FUNCTION: Final[str] = "uri"

_FAMILY_BY_VARIANT: dict[StorefrontVariant, ContractFamily] = {
    StorefrontVariant.SIMPLE: ContractFamily.STOREFRONT,
    StorefrontVariant.V2: ContractFamily.STOREFRONT_V2,
    StorefrontVariant.AFFILIATE: ContractFamily.AFFILIATE_STOREFRONT,
}


class StorefrontTracker:
    """Owns Storefront, TokenListing and Order records."""

    def __init__(
        self,
        store: EntityStore,
        reader: ContractReader,
        resolver: CrossReferenceResolver,
    ) -> None:
        self.store = store
        self.reader = reader
        self.resolver = resolver

    def _read[T](
        self, address: str, function: str, parse: Callable[[object], T], default: T, *args: object
    ) -> T:
        """Best-effort view call; failures and unparseable values give ``default``."""

        value = self.reader.read(address, function, *args).value_or(None)
        if value is None:
            return default
        try:
            return parse(value)
        except (TypeError, ValueError):
            log.warning("Unusable %s() result from %s: %r", function, address, value)
            return default

    def _read_address(self, address: str, function: str) -> str | None:
        value = self._read(address, function, normalize_address, ZERO_ADDRESS)
        return None if value == ZERO_ADDRESS else value

    def _read_text(self, address: str, function: str, *args: object) -> str | None:
        value = self._read(address, function, str, "", *args)
        return value or None

    def _load_storefront(self, event: ChainEvent, purpose: str) -> Storefront | None:
        storefront = self.store.load(Storefront, event.address)
        if storefront is None:
            log.warning("Storefront %s not found for %s", event.address, purpose)
        return storefront

    # Factories -------------------------------------------------------------------

    def on_storefront_created(self, event: ChainEvent) -> None:
        variant = StorefrontVariant.SIMPLE
        if event.family is None and event.optional_address("affiliateVerifier") is not None:
            # Only the affiliate factory announces a verifier.
            log.info("Storefront event from %s names an affiliate verifier", event.address)
            variant = StorefrontVariant.AFFILIATE
        self._create(event, variant)

    def on_storefront_v2_created(self, event: ChainEvent) -> None:
        self._create(event, StorefrontVariant.V2)

    def on_affiliate_storefront_created(self, event: ChainEvent) -> None:
        self._create(event, StorefrontVariant.AFFILIATE)

    def _create(self, event: ChainEvent, variant: StorefrontVariant) -> None:
        address = event.address_param("storefront")
        affiliate_verifier = event.optional_address("affiliateVerifier")
        storefront = Storefront(
            address=address,
            variant=variant,
            owner=event.address_param("owner"),
            erc1155_token=event.address_param("erc1155Token"),
            escrow_factory=event.address_param("escrowFactory"),
            affiliate_verifier=affiliate_verifier,
            is_affiliate_enabled=variant is StorefrontVariant.AFFILIATE,
        )
        storefront.arbiter = self._read_address(address, "getArbiter")
        storefront.min_settle_time = self._read(address, "MIN_SETTLE_TIME", normalize_uint, 0)
        storefront.settle_deadline = self._read(address, "settleDeadline", normalize_uint, 0)
        storefront.ready = self._read(address, "ready", normalize_flag, False)
        storefront.seaport = self._read_address(address, "SEAPORT")
        storefront.contract_uri = self._read_text(storefront.erc1155_token, CONTRACT_URI_FUNCTION)
        mark_created(storefront, event)
        self.store.save(storefront)
        self.resolver.register_contract(address, _FAMILY_BY_VARIANT[variant], event)
        log.info("Created %s storefront %s, owner %s", variant, address, storefront.owner)

    # Orders ----------------------------------------------------------------------

    def on_order_fulfilled(self, event: ChainEvent) -> None:
        storefront = self._load_storefront(event, "order")
        if storefront is None:
            return

        order = Order(
            transaction_hash=event.transaction_hash,
            buyer=event.address_param("buyer"),
            seller=storefront.owner,
            storefront=storefront.address,
            token_id=event.uint("tokenId"),
            amount=event.uint("amount"),
            price=event.optional_uint("price"),
            payment_token=event.optional_address("paymentToken"),
            escrow_contract=event.optional_address("escrowContract"),
            affiliate=event.optional_address("affiliate"),
            affiliate_share=event.optional_uint("affiliateShare"),
            encrypted_data=event.text("encryptedData", ""),
            ephemeral_public_key=event.text("ephemeralPublicKey", ""),
            iv=event.text("iv", ""),
            verification_hash=event.text("verificationHash", ""),
        )
        mark_created(order, event)

        payment = self.store.load(OrderPayment, event.transaction_hash)
        if payment is not None:
            payment.order = order.transaction_hash
            order.payment = payment.transaction_hash
            self.store.save(payment)

        self.store.save(order)
        self._link_escrow(order)
        log.info(
            "Order %s on storefront %s: buyer %s, token %s x%s",
            order.transaction_hash,
            storefront.address,
            order.buyer,
            order.token_id,
            order.amount,
        )

    def _link_escrow(self, order: Order) -> None:
        escrow: OrderEscrow | None = None
        if order.escrow_contract is not None:
            escrow = self.store.load(OrderEscrow, order.escrow_contract)
        if escrow is None:
            escrow = self.resolver.escrow_for_transaction(order.transaction_hash)
        if escrow is not None:
            self.resolver.link_escrow_to_order(escrow, order)
        elif order.escrow_contract is not None:
            # Escrow not seen yet; let its creation find this order.
            self.resolver.index_order_escrow(order, order.escrow_contract)

    # Listings --------------------------------------------------------------------

    def on_listing_added(self, event: ChainEvent) -> None:
        storefront = self._load_storefront(event, "listing")
        if storefront is None:
            return
        token_id = event.uint("tokenId")
        listing = TokenListing(
            storefront=storefront.address,
            token_id=token_id,
            price=event.uint("price"),
            payment_token=event.address_param("paymentToken"),
            affiliate_fee=event.optional_uint("affiliateFee"),
        )
        listing.contract_uri = self._read_text(storefront.erc1155_token, CONTRACT_URI_FUNCTION)
        listing.token_uri = self._read_text(storefront.erc1155_token, TOKEN_URI_FUNCTION, token_id)
        if listing.contract_uri is not None:
            storefront.contract_uri = listing.contract_uri
            mark_updated(storefront, event)
            self.store.save(storefront)
        mark_created(listing, event)
        self.store.save(listing)
        log.info("Listed token %s on %s at %s", token_id, storefront.address, listing.price)

    def _load_listing(self, event: ChainEvent, purpose: str) -> TokenListing | None:
        key = ListingKey(event.address, event.uint("tokenId"))
        listing = self.store.load(TokenListing, key)
        if listing is None:
            log.warning("Listing %s not found for %s", key, purpose)
        return listing

    def on_listing_updated(self, event: ChainEvent) -> None:
        listing = self._load_listing(event, "update")
        if listing is None:
            return
        listing.price = event.uint("newPrice")
        if event.has("newPaymentToken"):
            listing.payment_token = event.address_param("newPaymentToken")
        if event.has("newAffiliateFee"):
            listing.affiliate_fee = event.uint("newAffiliateFee")
        mark_updated(listing, event)
        self.store.save(listing)

    def on_listing_removed(self, event: ChainEvent) -> None:
        listing = self._load_listing(event, "removal")
        if listing is None:
            return
        listing.active = False
        mark_updated(listing, event)
        self.store.save(listing)

    # Settings --------------------------------------------------------------------

    def on_ready_state_changed(self, event: ChainEvent) -> None:
        storefront = self._load_storefront(event, "ready state")
        if storefront is None:
            return
        storefront.ready = event.flag("newState")
        mark_updated(storefront, event)
        self.store.save(storefront)

    def on_settle_deadline_updated(self, event: ChainEvent) -> None:
        storefront = self._load_storefront(event, "settle deadline")
        if storefront is None:
            return
        storefront.settle_deadline = event.uint("newSettleDeadline")
        mark_updated(storefront, event)
        self.store.save(storefront)

    def on_token_address_changed(self, event: ChainEvent) -> None:
        storefront = self._load_storefront(event, "token address change")
        if storefront is None:
            return
        storefront.erc1155_token = event.address_param("newAddress")
        # a new token contract has to be marked ready again by the owner
        storefront.ready = False
        storefront.contract_uri = self._read_text(storefront.erc1155_token, CONTRACT_URI_FUNCTION)
        mark_updated(storefront, event)
        self.store.save(storefront)
        log.info("Storefront %s now sells %s", storefront.address, storefront.erc1155_token)
