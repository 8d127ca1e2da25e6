"""ContractReader for replays without chain access."""

from __future__ import annotations

from typing import TYPE_CHECKING

from marketledger.domain.ports import ReadFailed

if TYPE_CHECKING:
    from marketledger.domain.ports import ReadResult


class OfflineContractReader:
    """Every read fails, so handlers fall back to their documented defaults."""

    def read(self, address: str, function: str, *args: object) -> ReadResult:
        _ = (address, args)
        return ReadFailed(function, "offline")
