"""Pydantic models describing one line of the JSON-lines event feed."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from marketledger.domain.events import normalize_address, normalize_uint
from marketledger.domain.model import ContractFamily, EventKind


class FeedBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EventRecord(FeedBaseModel):
    address: str = Field(validation_alias=AliasChoices("address", "sourceContractAddress"))
    event: EventKind = Field(validation_alias=AliasChoices("event", "eventKind"))
    params: dict[str, Any] = Field(
        default_factory=dict[str, Any], validation_alias=AliasChoices("params", "parameters")
    )
    block_number: int = Field(alias="blockNumber")
    block_timestamp: int = Field(alias="blockTimestamp")
    transaction_hash: str = Field(alias="transactionHash")
    log_index: int = Field(alias="logIndex")
    family: ContractFamily | None = None

    @field_validator("address", mode="before")
    @classmethod
    def _normalize_address(cls, value: object) -> str:
        try:
            return normalize_address(value)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("block_number", "block_timestamp", "log_index", mode="before")
    @classmethod
    def _parse_uint(cls, value: object) -> int:
        try:
            return normalize_uint(value)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("transaction_hash", mode="before")
    @classmethod
    def _normalize_hash(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value
