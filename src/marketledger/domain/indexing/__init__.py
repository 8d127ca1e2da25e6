"""Event handling components that derive marketplace entities from the contract feed.

Each tracker owns a group of entity types and mutates only those; cross-entity links
go through :class:`CrossReferenceResolver`. :class:`EventRouter` wires the trackers
together and is the single entry point for feed events.
"""

from __future__ import annotations

from .attestations import AttestationLinker
from .auctions import AuctionStateMachine
from .curation import CurationTracker
from .escrows import EscrowSettlementTracker
from .ledger import ProcessedEventLedger
from .links import CrossReferenceResolver
from .router import DEFAULT_FAMILY_BY_KIND, DispatchOutcome, EventRouter, build_handler_table
from .seaport import SeaportTracker
from .storefronts import StorefrontTracker
from .tokens import AuctionItemTracker

__all__ = [
    "DEFAULT_FAMILY_BY_KIND",
    "AttestationLinker",
    "AuctionItemTracker",
    "AuctionStateMachine",
    "CrossReferenceResolver",
    "CurationTracker",
    "DispatchOutcome",
    "EscrowSettlementTracker",
    "EventRouter",
    "ProcessedEventLedger",
    "SeaportTracker",
    "StorefrontTracker",
    "build_handler_table",
]
