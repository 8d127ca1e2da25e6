"""Processed-event ledger guarding against at-least-once redelivery."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from marketledger.domain.model import ProcessedEvent

if TYPE_CHECKING:
    from marketledger.domain.events import ChainEvent
    from marketledger.domain.ports import EntityStore

log = getLogger(__name__)


class ProcessedEventLedger:
    """Remembers every ``(transaction_hash, log_index)`` whose handler ran to completion."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def seen(self, event: ChainEvent) -> bool:
        return self.store.load(ProcessedEvent, event.key) is not None

    def record(self, event: ChainEvent) -> None:
        self.store.save(
            ProcessedEvent(
                transaction_hash=event.transaction_hash,
                log_index=event.log_index,
                kind=event.kind,
                address=event.address,
                block_number=event.block_number,
            )
        )
        log.debug("Recorded %s at %s:%s", event.kind, event.transaction_hash, event.log_index)
