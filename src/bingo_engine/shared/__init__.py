"""Shared utilities, shared models and cross-cutting helpers for the engine."""

from bingo_engine.shared.enums import ChallengeType, LineType, WinOutcome
from bingo_engine.shared.events import GrantSummary, IngestionResult, WinReport
from bingo_engine.shared.identifiers import (
    DEFAULT_GAME_ID,
    normalize_challenge_id,
    normalize_game_id,
    progress_key,
    split_progress_key,
)
from bingo_engine.shared.rng import DeterministicRandomService, effective_weight

__all__ = [
    "DEFAULT_GAME_ID",
    "ChallengeType",
    "DeterministicRandomService",
    "GrantSummary",
    "IngestionResult",
    "LineType",
    "WinOutcome",
    "WinReport",
    "effective_weight",
    "normalize_challenge_id",
    "normalize_game_id",
    "progress_key",
    "split_progress_key",
]
