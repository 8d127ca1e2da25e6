"""Translate validated feed records into domain events."""

from __future__ import annotations

from typing import TYPE_CHECKING

from marketledger.domain.events import ChainEvent

if TYPE_CHECKING:
    from .schema import EventRecord


def to_chain_event(record: EventRecord) -> ChainEvent:
    return ChainEvent(
        address=record.address,
        kind=record.event,
        block_number=record.block_number,
        block_timestamp=record.block_timestamp,
        transaction_hash=record.transaction_hash,
        log_index=record.log_index,
        params=dict(record.params),
        family=record.family,
    )
