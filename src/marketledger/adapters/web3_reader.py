"""ContractReader backed by web3.py view calls over JSON-RPC."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from web3 import Web3
from web3.exceptions import Web3Exception

from marketledger.domain.ports import ReadFailed, ReadOk

if TYPE_CHECKING:
    from web3.contract import Contract

    from marketledger.config import ChainConfig
    from marketledger.domain.ports import ReadResult

log = getLogger(__name__)


def _view(
    name: str, outputs: list[dict[str, Any]], inputs: list[dict[str, Any]] | None = None
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": inputs or [],
        "outputs": outputs,
    }


def _out(abi_type: str, name: str = "") -> dict[str, Any]:
    return {"type": abi_type, "name": name}


_UINT_ARG: Final = [_out("uint256", "id")]

AUCTION_DATA_COMPONENTS: Final[list[dict[str, Any]]] = [
    _out("address", "tokenContract"),
    _out("uint256", "tokenId"),
    _out("uint256", "highestBid"),
    _out("address", "highestBidder"),
    _out("uint256", "startTime"),
    _out("uint256", "duration"),
    _out("uint256", "reservePrice"),
    _out("address", "auctionCurrency"),
    _out("uint16", "minBidIncrementBps"),
    _out("uint16", "premiumBps"),
    _out("uint256", "timeExtension"),
    _out("uint256", "paymentAmount"),
]

# Only the view functions the indexer reads; one fragment list serves every contract family.
VIEW_ABI: Final[list[dict[str, Any]]] = [
    _view(
        "getAuctionData",
        [{"type": "tuple", "name": "", "components": AUCTION_DATA_COMPONENTS}],
        _UINT_ARG,
    ),
    _view("tokenURI", [_out("string")], _UINT_ARG),
    _view("uri", [_out("string")], _UINT_ARG),
    _view("contractURI", [_out("string")]),
    _view("name", [_out("string")]),
    _view("symbol", [_out("string")]),
    _view("getArbiter", [_out("address")]),
    _view("MIN_SETTLE_TIME", [_out("uint256")]),
    _view("settleDeadline", [_out("uint256")]),
    _view("ready", [_out("bool")]),
    _view("SEAPORT", [_out("address")]),
]


def _plain(value: Any) -> Any:
    """Turn decoded struct tuples into dicts keyed by component name."""

    if hasattr(value, "_asdict"):
        return {name: _plain(item) for name, item in value._asdict().items()}
    if isinstance(value, list | tuple):
        return [_plain(item) for item in value]
    return value


class Web3ContractReader:
    """Synchronous view calls; every failure is reported as :class:`ReadFailed`."""

    def __init__(self, web3: Web3, *, abi: list[dict[str, Any]] | None = None) -> None:
        self.web3 = web3
        self._abi = abi or VIEW_ABI
        self._functions = frozenset(entry["name"] for entry in self._abi)
        self._contracts: dict[str, Contract] = {}

    @classmethod
    def from_config(cls, config: ChainConfig) -> Web3ContractReader:
        provider = Web3.HTTPProvider(
            config.rpc_url, request_kwargs={"timeout": config.timeout_seconds}
        )
        return cls(Web3(provider))

    def _contract(self, address: str) -> Contract:
        contract = self._contracts.get(address)
        if contract is None:
            contract = self.web3.eth.contract(
                address=Web3.to_checksum_address(address), abi=self._abi, decode_tuples=True
            )
            self._contracts[address] = contract
        return contract

    def read(self, address: str, function: str, *args: object) -> ReadResult:
        if function not in self._functions:
            return ReadFailed(function, "no ABI fragment for function")
        try:
            call = getattr(self._contract(address).functions, function)(*args)
            value = call.call()
        except (Web3Exception, ValueError, OSError) as exc:
            log.debug("%s() on %s failed: %s", function, address, exc)
            return ReadFailed(function, str(exc))
        return ReadOk(_plain(value))
