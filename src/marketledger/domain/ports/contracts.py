"""Port for best-effort reads of on-chain contract state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from marketledger.domain.model import Address


@dataclass(frozen=True, slots=True)
class ReadOk:
    value: Any

    @property
    def ok(self) -> bool:
        return True

    def value_or[T](self, default: T) -> T:
        _ = default
        return self.value


@dataclass(frozen=True, slots=True)
class ReadFailed:
    function: str
    reason: str

    @property
    def ok(self) -> bool:
        return False

    def value_or[T](self, default: T) -> T:
        return default


type ReadResult = ReadOk | ReadFailed


@runtime_checkable
class ContractReader(Protocol):
    """Call a view function on ``address``; reverts and timeouts come back as ``ReadFailed``."""

    def read(self, address: Address, function: str, *args: object) -> ReadResult: ...
