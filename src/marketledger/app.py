"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from marketledger.adapters.feed import JsonLinesFeed
from marketledger.adapters.offline import OfflineContractReader
from marketledger.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from marketledger.adapters.web3_reader import Web3ContractReader
from marketledger.config import MissingConfigurationError, get_chain_config, get_replay_config
from marketledger.domain.indexing import DispatchOutcome, EventRouter
from marketledger.domain.model import CLASS_BY_ENTITY_TYPE
from marketledger.domain.ports.unit_of_work import UnitOfWork

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from marketledger.domain.events import ChainEvent
    from marketledger.domain.model import Entity, EntityKey, EntityType
    from marketledger.domain.ports import ContractReader

UnitOfWorkFactory = Callable[[], UnitOfWork]


log = getLogger(__name__)


@dataclass(slots=True)
class ReplayResult:
    handled: int = 0
    duplicates: int = 0
    unrouted: int = 0
    malformed: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def processed(self) -> int:
        return self.handled + self.duplicates + self.unrouted + self.malformed + self.failed

    def count(self, outcome: DispatchOutcome) -> None:
        match outcome:
            case DispatchOutcome.HANDLED:
                self.handled += 1
            case DispatchOutcome.DUPLICATE:
                self.duplicates += 1
            case DispatchOutcome.UNROUTED:
                self.unrouted += 1
            case DispatchOutcome.MALFORMED:
                self.malformed += 1


def build_contract_reader(*, rpc_url: str | None = None, offline: bool = False) -> ContractReader:
    """Web3 reader for the configured endpoint, or an offline reader without one."""

    if offline:
        return OfflineContractReader()
    try:
        config = get_chain_config(rpc_url=rpc_url)
    except MissingConfigurationError:
        log.warning("No RPC endpoint configured; contract reads fall back to defaults")
        return OfflineContractReader()
    log.info("Reading contract state from %s", config.rpc_url)
    return Web3ContractReader.from_config(config)


def replay_events(
    events: Iterable[ChainEvent],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    reader: ContractReader,
    deduplicate: bool = True,
    progress_every: int | None = None,
) -> ReplayResult:
    """Feed events through the router in order, committing after each one.

    An event whose handler raises, or that turns out malformed, is rolled back so
    none of its partial writes survive; replay continues with the next event.
    """

    every = progress_every or get_replay_config().progress_every
    result = ReplayResult()
    with unit_of_work_factory() as uow:
        router = EventRouter.build(uow.store, reader, deduplicate=deduplicate)
        for event in events:
            try:
                outcome = router.dispatch(event)
            except Exception:
                uow.rollback()
                result.failed += 1
                log.exception(
                    "Handler failed for %s at %s:%s",
                    event.kind,
                    event.transaction_hash,
                    event.log_index,
                )
                continue

            if outcome == DispatchOutcome.MALFORMED:
                uow.rollback()
            else:
                uow.commit()
            result.count(outcome)

            if result.processed % every == 0:
                log.info(
                    "Replayed %s events (block %s): handled=%s, duplicates=%s, failed=%s",
                    result.processed,
                    event.block_number,
                    result.handled,
                    result.duplicates,
                    result.failed,
                )
    return result


def replay_feed(
    path: Path,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    reader: ContractReader | None = None,
    rpc_url: str | None = None,
    database_uri: str | None = None,
    deduplicate: bool | None = None,
    offline: bool = False,
    strict: bool = False,
) -> ReplayResult:
    """Replay a JSON-lines feed file into the configured store."""

    replay_config = get_replay_config()
    if unit_of_work_factory is None:
        if not is_started():
            startup(database_uri=database_uri)
        unit_of_work_factory = SqlAlchemyUnitOfWork
    effective_reader = reader or build_contract_reader(rpc_url=rpc_url, offline=offline)
    effective_dedupe = replay_config.deduplicate if deduplicate is None else deduplicate
    log.info("Starting replay of %s: deduplicate=%s", path, effective_dedupe)

    feed = JsonLinesFeed(path, strict=strict)
    result = replay_events(
        feed,
        unit_of_work_factory=unit_of_work_factory,
        reader=effective_reader,
        deduplicate=effective_dedupe,
        progress_every=replay_config.progress_every,
    )
    result.skipped = feed.skipped

    log.info(
        "Finished replay: handled=%s, duplicates=%s, unrouted=%s, malformed=%s, "
        "failed=%s, skipped lines=%s",
        result.handled,
        result.duplicates,
        result.unrouted,
        result.malformed,
        result.failed,
        result.skipped,
    )
    return result


def show_entity(
    entity_type: EntityType,
    key: EntityKey,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    database_uri: str | None = None,
) -> Entity | None:
    """Load one stored entity by type and key."""

    if unit_of_work_factory is None:
        if not is_started():
            startup(database_uri=database_uri)
        unit_of_work_factory = SqlAlchemyUnitOfWork
    entity_cls = CLASS_BY_ENTITY_TYPE[entity_type]
    with unit_of_work_factory() as uow:
        return uow.store.load(entity_cls, key)
