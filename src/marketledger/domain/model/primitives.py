"""Value objects shared by the marketplace entities: addresses, typed keys, link targets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final, Literal, NamedTuple

from marketledger.domain.model.enums import IndexName

type Address = str
type TxHash = str
type EntityKey = str | tuple[Any, ...]

ZERO_ADDRESS: Final[Address] = "0x" + "0" * 40


class AuctionKey(NamedTuple):
    house: Address
    auction_id: int


class EventKey(NamedTuple):
    transaction_hash: TxHash
    log_index: int


class TokenKey(NamedTuple):
    contract: Address
    token_id: int


class ListingKey(NamedTuple):
    storefront: Address
    token_id: int


class CurationKey(NamedTuple):
    contract: Address
    curation_id: int


class CuratorKey(NamedTuple):
    contract: Address
    curation_id: int
    curator: Address


class CurationListingKey(NamedTuple):
    contract: Address
    curation_id: int
    listing_id: int


class IndexKey(NamedTuple):
    index: IndexName
    lookup: tuple[str | int, ...]


# Link targets ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Unlinked:
    kind: Literal["unlinked"] = "unlinked"


@dataclass(frozen=True, slots=True)
class OrderLink:
    order: TxHash
    kind: Literal["order"] = "order"


@dataclass(frozen=True, slots=True)
class AuctionLink:
    auction: AuctionKey
    kind: Literal["auction"] = "auction"


type LinkTarget = Unlinked | OrderLink | AuctionLink

UNLINKED: Final[Unlinked] = Unlinked()
