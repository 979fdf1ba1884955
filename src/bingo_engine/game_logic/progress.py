"""Per-player progress ledger for every bingo game.

The ledger keeps four maps keyed by player id: numeric progress and completion
flags addressed by ``game|challenge`` keys, generated boards per game, and the
games whose completion reward a player has already claimed. Resets remove
entries instead of zeroing them, and a player's inner map is dropped as soon as
it becomes empty.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence  # noqa: TC003

from bingo_engine.game_logic.definitions import BOARD_SIZE
from bingo_engine.game_logic.persistence import ProgressSnapshot
from bingo_engine.shared.identifiers import (
    KEY_SEPARATOR,
    normalize_challenge_id,
    normalize_game_id,
    progress_key,
    split_progress_key,
)

Board = tuple[str, ...]


class ProgressStore:
    """Mutable ledger of progress, completion, boards and reward claims."""

    def __init__(self, on_change: Callable[[], None] | None = None) -> None:
        self._progress: dict[str, dict[str, int]] = {}
        self._completed: dict[str, set[str]] = {}
        self._boards: dict[str, dict[str, Board]] = {}
        self._claimed: dict[str, set[str]] = {}
        self._dirty = False
        self._on_change = on_change

    # Dirty tracking

    @property
    def dirty(self) -> bool:
        """Return ``True`` when state changed since the last :meth:`clear_dirty`."""
        return self._dirty

    def clear_dirty(self) -> None:
        self._dirty = False

    def mark_dirty(self) -> None:
        """Flag the ledger as changed and notify the listener."""
        self._dirty = True
        if self._on_change is not None:
            self._on_change()

    # Progress and completion

    def get_progress(self, player_id: str, game_id: str, challenge_id: str) -> int:
        per_player = self._progress.get(player_id)
        if per_player is None:
            return 0
        return per_player.get(progress_key(game_id, challenge_id), 0)

    def add_progress(
        self, player_id: str, game_id: str, challenge_id: str, amount: int
    ) -> None:
        """Add *amount* to the stored progress; non-positive amounts are ignored."""
        if amount <= 0:
            return
        per_player = self._progress.setdefault(player_id, {})
        key = progress_key(game_id, challenge_id)
        per_player[key] = per_player.get(key, 0) + amount
        self.mark_dirty()

    def set_progress(
        self, player_id: str, game_id: str, challenge_id: str, value: int
    ) -> None:
        """Overwrite the stored progress, clamping negative values to zero."""
        per_player = self._progress.setdefault(player_id, {})
        per_player[progress_key(game_id, challenge_id)] = max(0, value)
        self.mark_dirty()

    def is_completed(self, player_id: str, game_id: str, challenge_id: str) -> bool:
        per_player = self._completed.get(player_id)
        return per_player is not None and (
            progress_key(game_id, challenge_id) in per_player
        )

    def mark_completed(self, player_id: str, game_id: str, challenge_id: str) -> None:
        """Record the challenge as completed until a reset removes it."""
        self._completed.setdefault(player_id, set()).add(
            progress_key(game_id, challenge_id)
        )
        self.mark_dirty()

    # Boards

    def get_board(self, player_id: str, game_id: str) -> Board | None:
        per_player = self._boards.get(player_id)
        if per_player is None:
            return None
        return per_player.get(normalize_game_id(game_id))

    def set_board(self, player_id: str, game_id: str, board: Sequence[str]) -> None:
        """Store a 25-slot board; boards of any other length are ignored."""
        if len(board) != BOARD_SIZE:
            return
        self._boards.setdefault(player_id, {})[normalize_game_id(game_id)] = tuple(
            normalize_challenge_id(challenge_id) for challenge_id in board
        )
        self.mark_dirty()

    # Reward claims

    def has_claimed_reward(self, player_id: str, game_id: str) -> bool:
        claimed = self._claimed.get(player_id)
        return claimed is not None and normalize_game_id(game_id) in claimed

    def mark_claimed_reward(self, player_id: str, game_id: str) -> None:
        self._claimed.setdefault(player_id, set()).add(normalize_game_id(game_id))
        self.mark_dirty()

    def clear_claimed_reward(self, player_id: str, game_id: str) -> None:
        claimed = self._claimed.get(player_id)
        if claimed is None:
            return
        game_key = normalize_game_id(game_id)
        if game_key in claimed:
            claimed.discard(game_key)
            if not claimed:
                del self._claimed[player_id]
            self.mark_dirty()

    # Resets

    def known_players(self) -> frozenset[str]:
        """Return every player with any recorded state."""
        return frozenset(
            (*self._progress, *self._completed, *self._boards, *self._claimed)
        )

    def reset_game_for_player(self, player_id: str, game_id: str) -> None:
        """Remove all progress, completion, board and claim state for one game."""
        game_key = normalize_game_id(game_id)
        prefix = f"{game_key}{KEY_SEPARATOR}"
        removed = self._drop_keys(player_id, lambda key: key.startswith(prefix))

        boards = self._boards.get(player_id)
        if boards is not None and boards.pop(game_key, None) is not None:
            removed += 1
            if not boards:
                del self._boards[player_id]

        if removed:
            self.mark_dirty()
        self.clear_claimed_reward(player_id, game_key)

    def reset_game_for_all_players(self, game_id: str) -> None:
        for player_id in self.known_players():
            self.reset_game_for_player(player_id, game_id)

    def reset_all_games_for_player(self, player_id: str) -> None:
        """Forget everything recorded for *player_id*."""
        removed = [
            state.pop(player_id, None)
            for state in (self._progress, self._completed, self._boards, self._claimed)
        ]
        if any(entry is not None for entry in removed):
            self.mark_dirty()

    def reset_challenge_for_player(
        self, player_id: str, challenge_id: str, game_id: str | None = None
    ) -> None:
        """Remove one challenge's progress and completion.

        With *game_id* only that game's entry is removed; without it the
        challenge is cleared in every game. Reward claims are left untouched.
        """
        challenge_key = normalize_challenge_id(challenge_id)
        if not challenge_key:
            return
        if game_id is not None and game_id.strip():
            key = progress_key(game_id, challenge_key)
            removed = self._drop_keys(player_id, lambda candidate: candidate == key)
        else:
            suffix = f"{KEY_SEPARATOR}{challenge_key}"
            removed = self._drop_keys(
                player_id, lambda candidate: candidate.endswith(suffix)
            )
        if removed:
            self.mark_dirty()

    def reset_challenge_for_all_players(
        self, challenge_id: str, game_id: str | None = None
    ) -> None:
        if not normalize_challenge_id(challenge_id):
            return
        for player_id in self.known_players():
            self.reset_challenge_for_player(player_id, challenge_id, game_id)

    def prune_orphans(self, known: Mapping[str, frozenset[str]]) -> int:
        """Drop keys whose game or challenge is absent from *known*.

        *known* maps normalized game ids to their challenge ids. Returns the
        number of removed entries.
        """

        def orphaned(key: str) -> bool:
            game_key, challenge_key = split_progress_key(key)
            challenges = known.get(game_key)
            return challenges is None or challenge_key not in challenges

        removed = 0
        for player_id in self.known_players():
            removed += self._drop_keys(player_id, orphaned)
        if removed:
            self.mark_dirty()
        return removed

    def _drop_keys(self, player_id: str, predicate: Callable[[str], bool]) -> int:
        removed = 0
        progress = self._progress.get(player_id)
        if progress is not None:
            doomed = [key for key in progress if predicate(key)]
            for key in doomed:
                del progress[key]
            removed += len(doomed)
            if not progress:
                del self._progress[player_id]

        completed = self._completed.get(player_id)
        if completed is not None:
            doomed_completed = {key for key in completed if predicate(key)}
            completed -= doomed_completed
            removed += len(doomed_completed)
            if not completed:
                del self._completed[player_id]
        return removed

    # Snapshots

    def to_snapshot(self) -> ProgressSnapshot:
        """Return an immutable copy of the ledger suitable for persistence."""
        return ProgressSnapshot(
            progress={
                player_id: dict(entries)
                for player_id, entries in self._progress.items()
            },
            completed={
                player_id: sorted(keys) for player_id, keys in self._completed.items()
            },
            boards={
                player_id: {game_id: list(board) for game_id, board in games.items()}
                for player_id, games in self._boards.items()
            },
            claimed_rewards={
                player_id: sorted(games) for player_id, games in self._claimed.items()
            },
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: ProgressSnapshot,
        on_change: Callable[[], None] | None = None,
    ) -> ProgressStore:
        """Rebuild a ledger from *snapshot*, skipping malformed entries."""
        store = cls(on_change=on_change)
        for player_id, entries in snapshot.progress.items():
            if entries:
                store._progress[player_id] = dict(entries)
        for player_id, keys in snapshot.completed.items():
            if keys:
                store._completed[player_id] = set(keys)
        for player_id, games in snapshot.boards.items():
            valid = {
                game_id: tuple(board)
                for game_id, board in games.items()
                if len(board) == BOARD_SIZE
            }
            if valid:
                store._boards[player_id] = valid
        for player_id, game_ids in snapshot.claimed_rewards.items():
            claimed = {
                normalize_game_id(game_id) for game_id in game_ids if game_id.strip()
            }
            if claimed:
                store._claimed[player_id] = claimed
        return store


__all__ = ["Board", "ProgressStore"]
