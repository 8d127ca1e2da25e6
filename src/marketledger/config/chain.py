"""JSON-RPC settings for on-chain contract reads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import optional_float_env, require_env_vars

RPC_URL_ENV: Final[str] = "MARKETLEDGER_RPC_URL"
RPC_TIMEOUT_ENV: Final[str] = "MARKETLEDGER_RPC_TIMEOUT"
DEFAULT_RPC_TIMEOUT_SECONDS: Final[float] = 10.0


@dataclass(frozen=True, slots=True)
class ChainConfig:
    rpc_url: str
    timeout_seconds: float = DEFAULT_RPC_TIMEOUT_SECONDS


def get_chain_config(*, rpc_url: str | None = None) -> ChainConfig:
    """Build the RPC config, preferring an explicit URL over ``MARKETLEDGER_RPC_URL``."""

    timeout = optional_float_env(RPC_TIMEOUT_ENV, DEFAULT_RPC_TIMEOUT_SECONDS)
    if rpc_url:
        return ChainConfig(rpc_url=rpc_url, timeout_seconds=timeout)
    values = require_env_vars([RPC_URL_ENV])
    return ChainConfig(rpc_url=values[RPC_URL_ENV], timeout_seconds=timeout)
