"""Unit-of-work abstraction around an entity store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from marketledger.domain.ports.persistence import EntityStore


@runtime_checkable
class UnitOfWork(Protocol):
    """Scopes one store session; writes become durable on ``commit``."""

    @property
    def store(self) -> EntityStore: ...

    def __enter__(self) -> UnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
