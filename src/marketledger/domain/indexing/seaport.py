"""Seaport OrderFulfilled logs and the storefront receipt tokens they transfer."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from marketledger.domain.events import normalize_address, normalize_uint
from marketledger.domain.indexing.context import mark_created
from marketledger.domain.indexing.storefronts import CONTRACT_URI_FUNCTION, TOKEN_URI_FUNCTION
from marketledger.domain.model import (
    ConsiderationItem,
    OfferItem,
    OrderPayment,
    ReceiptToken,
    SeaportOrder,
    Storefront,
    TokenKey,
)

if TYPE_CHECKING:
    from marketledger.domain.events import ChainEvent
    from marketledger.domain.ports import ContractReader, EntityStore

log = getLogger(__name__)

_OFFER_FIELDS: Final = {
    "itemType": normalize_uint,
    "token": normalize_address,
    "identifier": normalize_uint,
    "amount": normalize_uint,
}
_CONSIDERATION_FIELDS: Final = {**_OFFER_FIELDS, "recipient": normalize_address}


class SeaportTracker:
    """Owns SeaportOrder and ReceiptToken records."""

    def __init__(self, store: EntityStore, reader: ContractReader) -> None:
        self.store = store
        self.reader = reader

    def _read_text(self, address: str, function: str, *args: object) -> str | None:
        value = self.reader.read(address, function, *args).value_or(None)
        return str(value) if value else None

    def on_order_fulfilled(self, event: ChainEvent) -> None:
        offer = [
            OfferItem(
                item_type=item["itemType"],
                token=item["token"],
                identifier=item["identifier"],
                amount=item["amount"],
            )
            for item in event.struct_list("offer", _OFFER_FIELDS)
        ]
        consideration = [
            ConsiderationItem(
                item_type=item["itemType"],
                token=item["token"],
                identifier=item["identifier"],
                amount=item["amount"],
                recipient=item["recipient"],
            )
            for item in event.struct_list("consideration", _CONSIDERATION_FIELDS)
        ]
        order = SeaportOrder(
            transaction_hash=event.transaction_hash,
            order_hash=event.text("orderHash"),
            offerer=event.address_param("offerer"),
            zone=event.optional_address("zone"),
            recipient=event.address_param("recipient"),
            offer=offer,
            consideration=consideration,
        )
        mark_created(order, event)

        if self.store.load(SeaportOrder, order.transaction_hash) is not None:
            log.warning("Replacing Seaport order of transaction %s", order.transaction_hash)

        storefront = self.store.load(Storefront, order.offerer)
        if storefront is not None:
            for item in offer:
                if item.token == storefront.erc1155_token:
                    self._attach_receipt(order, storefront, item, event)

        payment = self.store.load(OrderPayment, event.transaction_hash)
        if payment is not None:
            payment.seaport_order = order.transaction_hash
            order.payment = payment.transaction_hash
            self.store.save(payment)
            log.info("Linked payment to Seaport order %s", order.transaction_hash)

        self.store.save(order)
        log.info(
            "Seaport order %s from %s: %s offered, %s considered",
            order.transaction_hash,
            order.offerer,
            len(offer),
            len(consideration),
        )

    def _attach_receipt(
        self, order: SeaportOrder, storefront: Storefront, item: OfferItem, event: ChainEvent
    ) -> None:
        order.storefront = storefront.address
        order.erc1155_contract_uri = self._read_text(item.token, CONTRACT_URI_FUNCTION)
        order.erc1155_token_uri = self._read_text(item.token, TOKEN_URI_FUNCTION, item.identifier)

        key = TokenKey(item.token, item.identifier)
        if self.store.load(ReceiptToken, key) is None:
            receipt = ReceiptToken(
                contract=item.token, token_id=item.identifier, uri=order.erc1155_token_uri
            )
            mark_created(receipt, event)
            self.store.save(receipt)
            log.debug("Recorded receipt token %s", key)
