"""Auction-item ERC721 collections, their tokens and token metadata records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Final

from marketledger.domain.model.base import TrackedEntity
from marketledger.domain.model.enums import EntityType
from marketledger.domain.model.primitives import Address, EventKey, TokenKey, TxHash

UNKNOWN_COLLECTION_NAME: Final[str] = "Unknown"
UNKNOWN_COLLECTION_SYMBOL: Final[str] = "UNKNOWN"


@dataclass(eq=False, kw_only=True)
class AuctionItemCollection(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.AUCTION_ITEM_COLLECTION

    address: Address
    owner: Address
    name: str = UNKNOWN_COLLECTION_NAME
    symbol: str = UNKNOWN_COLLECTION_SYMBOL
    contract_uri: str | None = None
    total_minted: int = 0

    @property
    def key(self) -> Address:
        return self.address


@dataclass(eq=False, kw_only=True)
class AuctionItemToken(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.AUCTION_ITEM_TOKEN

    contract: Address
    token_id: int
    owner: Address
    minted_tx: TxHash | None = None
    metadata: EventKey | None = None

    @property
    def key(self) -> TokenKey:
        return TokenKey(self.contract, self.token_id)


@dataclass(eq=False, kw_only=True)
class TokenMetadata(TrackedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.TOKEN_METADATA

    transaction_hash: TxHash
    log_index: int
    token: TokenKey
    name: str = ""
    description: str = ""
    image: str = ""
    terms_of_service: str = ""

    @property
    def key(self) -> EventKey:
        return EventKey(self.transaction_hash, self.log_index)
