"""Immutable result records emitted by the engine."""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from bingo_engine.shared.enums import WinOutcome


class WinReport(BaseModel):
    """Summary of a win evaluation and the policy actions it triggered."""

    model_config = ConfigDict(frozen=True)

    player_id: str
    game_id: str
    outcome: WinOutcome = WinOutcome.NONE
    reward_action: str | None = None
    broadcast_message: str | None = None
    reset_all_players: bool = False
    disabled_game: bool = False

    @property
    def won(self) -> bool:
        """Return ``True`` when a line was completed."""
        return self.outcome is WinOutcome.LINE_COMPLETED


class IngestionResult(BaseModel):
    """Outcome of reporting one event to the engine."""

    model_config = ConfigDict(frozen=True)

    changed: bool = False
    completed_any: bool = False
    changed_games: tuple[str, ...] = Field(default_factory=tuple)
    wins: tuple[WinReport, ...] = Field(default_factory=tuple)

    def merge(self, other: IngestionResult) -> IngestionResult:
        """Return a result combining this one with *other*."""
        extra_games = tuple(
            game for game in other.changed_games if game not in self.changed_games
        )
        return IngestionResult(
            changed=self.changed or other.changed,
            completed_any=self.completed_any or other.completed_any,
            changed_games=(*self.changed_games, *extra_games),
            wins=(*self.wins, *other.wins),
        )


class GrantSummary(BaseModel):
    """Tally returned when an admin grant is fanned out across games."""

    model_config = ConfigDict(frozen=True)

    attempted: int = Field(default=0, ge=0)
    matched: int = Field(default=0, ge=0)
    applied: int = Field(default=0, ge=0)


__all__ = ["GrantSummary", "IngestionResult", "WinReport"]
