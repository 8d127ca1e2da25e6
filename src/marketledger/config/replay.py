"""Replay defaults for feed processing."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_PROGRESS_EVERY = 500


@dataclass(frozen=True, slots=True)
class ReplayConfig:
    progress_every: int = DEFAULT_PROGRESS_EVERY
    deduplicate: bool = True


def get_replay_config() -> ReplayConfig:
    return ReplayConfig()
