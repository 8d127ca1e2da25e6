"""Helpers shared by the event handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from marketledger.domain.events import ChainEvent
    from marketledger.domain.model import TrackedEntity


def mark_created(entity: TrackedEntity, event: ChainEvent) -> None:
    entity.stamp_created(
        timestamp=event.block_timestamp,
        block_number=event.block_number,
        transaction_hash=event.transaction_hash,
    )


def mark_updated(entity: TrackedEntity, event: ChainEvent) -> None:
    entity.touch(timestamp=event.block_timestamp, transaction_hash=event.transaction_hash)
