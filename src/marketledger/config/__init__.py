"""Configuration helpers for marketledger."""

from __future__ import annotations

from .chain import ChainConfig, get_chain_config
from .env import optional_float_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .replay import ReplayConfig, get_replay_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "ChainConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "ReplayConfig",
    "StorageConfig",
    "configure_logging",
    "get_chain_config",
    "get_database_config",
    "get_database_uri",
    "get_replay_config",
    "get_storage_config",
    "optional_float_env",
    "require_env_vars",
]
