"""The unit of input: one decoded contract log, plus typed access to its parameters."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

from marketledger.domain.model import ZERO_ADDRESS, EventKey

if TYPE_CHECKING:
    from collections.abc import Callable

    from marketledger.domain.model import Address, ContractFamily, EventKind, TxHash

_ADDRESS_PATTERN: Final = re.compile(r"^0x[0-9a-f]{40}$")
_TRUE_STRINGS: Final = frozenset({"true", "1", "yes"})
_FALSE_STRINGS: Final = frozenset({"false", "0", "no", ""})


class MalformedEventError(ValueError):
    """Raised when an event lacks a parameter its handler needs, or carries an invalid one."""

    def __init__(self, message: str, *, parameter: str | None = None) -> None:
        super().__init__(message)
        self.parameter = parameter


def normalize_address(value: object) -> Address:
    """Return ``value`` as a lower-case ``0x`` address or raise ``ValueError``."""

    if isinstance(value, bytes):
        value = "0x" + value.hex()
    if not isinstance(value, str):
        raise TypeError(f"Expected an address string, got {type(value).__name__}")
    candidate = value.strip().lower()
    if not _ADDRESS_PATTERN.match(candidate):
        raise ValueError(f"Invalid address: {value!r}")
    return candidate


def normalize_uint(value: object) -> int:
    """Accept ints, decimal strings and ``0x`` hex strings; reject negatives and bools."""

    if isinstance(value, bool):
        raise TypeError("Booleans are not integers here")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        result = int(stripped, 16) if stripped.lower().startswith("0x") else int(stripped, 10)
    else:
        raise TypeError(f"Expected an integer, got {type(value).__name__}")
    if result < 0:
        raise ValueError(f"Expected an unsigned integer, got {result}")
    return result


def normalize_flag(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"Expected a boolean, got {value!r}")


@dataclass(frozen=True, slots=True)
class ChainEvent:
    """A decoded log as delivered by the feed.

    ``params`` holds the raw decoded arguments; handlers go through the typed accessors
    so that a missing or ill-typed argument surfaces as :class:`MalformedEventError`.
    """

    address: Address
    kind: EventKind
    block_number: int
    block_timestamp: int
    transaction_hash: TxHash
    log_index: int
    params: Mapping[str, object] = field(default_factory=dict[str, object])
    family: ContractFamily | None = None

    @property
    def key(self) -> EventKey:
        return EventKey(self.transaction_hash, self.log_index)

    def has(self, name: str) -> bool:
        return self.params.get(name) is not None

    def _require(self, name: str) -> object:
        value = self.params.get(name)
        if value is None:
            raise MalformedEventError(
                f"{self.kind} at {self.transaction_hash}:{self.log_index} is missing {name!r}",
                parameter=name,
            )
        return value

    def _invalid(self, name: str, exc: Exception) -> MalformedEventError:
        return MalformedEventError(
            f"{self.kind} at {self.transaction_hash}:{self.log_index} has invalid {name!r}: {exc}",
            parameter=name,
        )

    def address_param(self, name: str) -> Address:
        raw = self._require(name)
        try:
            return normalize_address(raw)
        except (TypeError, ValueError) as exc:
            raise self._invalid(name, exc) from exc

    def optional_address(self, name: str) -> Address | None:
        """Like :meth:`address_param` but a missing or zero address reads as ``None``."""

        if not self.has(name):
            return None
        address = self.address_param(name)
        return None if address == ZERO_ADDRESS else address

    def uint(self, name: str) -> int:
        raw = self._require(name)
        try:
            return normalize_uint(raw)
        except (TypeError, ValueError) as exc:
            raise self._invalid(name, exc) from exc

    def optional_uint(self, name: str, default: int = 0) -> int:
        return self.uint(name) if self.has(name) else default

    def optional_flag(self, name: str, *, default: bool = False) -> bool:
        return self.flag(name) if self.has(name) else default

    def flag(self, name: str) -> bool:
        raw = self._require(name)
        try:
            return normalize_flag(raw)
        except ValueError as exc:
            raise self._invalid(name, exc) from exc

    def text(self, name: str, default: str | None = None) -> str:
        """String parameter; byte strings are rendered as ``0x`` hex."""

        if not self.has(name):
            if default is not None:
                return default
            self._require(name)
        raw = self.params[name]
        if isinstance(raw, bytes):
            return "0x" + raw.hex()
        if isinstance(raw, str):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            return str(raw)
        raise self._invalid(name, TypeError(f"expected text, got {type(raw).__name__}"))

    def struct_list(
        self, name: str, fields: Mapping[str, Callable[[object], Any]]
    ) -> list[dict[str, Any]]:
        """Array-of-struct parameter, each member parsed by its entry in ``fields``.

        Structs may arrive as objects keyed by member name or as positional arrays in
        the order of ``fields``.
        """

        raw = self._require(name)
        if not isinstance(raw, list | tuple):
            raise self._invalid(name, TypeError(f"expected a list, got {type(raw).__name__}"))
        structs: list[dict[str, Any]] = []
        for position, item in enumerate(raw):
            label = f"{name}[{position}]"
            if isinstance(item, list | tuple) and len(item) == len(fields):
                item = dict(zip(fields, item, strict=True))
            if not isinstance(item, Mapping):
                raise self._invalid(label, TypeError("unexpected struct shape"))
            struct: dict[str, Any] = {}
            for member, parse in fields.items():
                value = item.get(member)
                if value is None:
                    raise MalformedEventError(
                        f"{self.kind} at {self.transaction_hash}:{self.log_index} is missing "
                        f"{label}.{member}",
                        parameter=name,
                    )
                try:
                    struct[member] = parse(value)
                except (TypeError, ValueError) as exc:
                    raise self._invalid(f"{label}.{member}", exc) from exc
            structs.append(struct)
        return structs
