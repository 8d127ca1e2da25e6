"""Where the ledger database lives.

``DATABASE_URI`` wins when set; otherwise the ledger is a SQLite file in the
per-user data directory, which ``MARKETLEDGER_DATA_DIR`` relocates and
``MARKETLEDGER_DATABASE_FILE`` renames.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
DATA_DIR_ENV: Final[str] = "MARKETLEDGER_DATA_DIR"
DATABASE_FILE_ENV: Final[str] = "MARKETLEDGER_DATABASE_FILE"

APP_DIR_NAME: Final[str] = "marketledger"
DEFAULT_DB_FILENAME: Final[str] = "ledger.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def locate_data_dir(self, *, create: bool = False) -> Path:
        data_dir = self.data_dir.expanduser().resolve()
        if create:
            data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def sqlite_uri(self) -> str:
        """URI of the ledger file; creates the data directory so SQLite can open it."""

        return f"sqlite+pysqlite:///{self.locate_data_dir(create=True) / self.database_filename}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _user_data_home() -> Path:
    if os.name == "nt":
        local = os.getenv("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    override = os.getenv(DATA_DIR_ENV)
    data_dir = Path(override) if override else _user_data_home() / APP_DIR_NAME
    return StorageConfig(
        data_dir=data_dir,
        database_filename=os.getenv(DATABASE_FILE_ENV) or DEFAULT_DB_FILENAME,
    )


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    explicit = os.getenv(DATABASE_URI_ENV)
    if explicit:
        return DatabaseConfig(uri=explicit)
    return DatabaseConfig(uri=(storage or get_storage_config()).sqlite_uri())


def get_database_uri() -> str:
    return get_database_config().uri
