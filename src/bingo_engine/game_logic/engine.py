"""Composition root wiring the bingo engine components together.

:class:`BingoEngine` is the object a host keeps for the lifetime of a world. It
owns the definition registry and progress ledger, exposes the ingestion entry
points, and offers the administrative operations (enable/disable, grants,
resets, board inspection, persistence flushing).
"""

from __future__ import annotations

import logging

from bingo_engine.game_logic.board import BoardGenerator, BoardSlotView
from bingo_engine.game_logic.host import HostHooks, RecordingHostHooks
from bingo_engine.game_logic.ingestion import IngestionFacade
from bingo_engine.game_logic.persistence import SnapshotStore  # noqa: TC001
from bingo_engine.game_logic.progress import Board, ProgressStore  # noqa: TC001
from bingo_engine.game_logic.registry import DefinitionRegistry, DefinitionSource
from bingo_engine.game_logic.win import WinEvaluator
from bingo_engine.settings import EngineSettings, get_settings
from bingo_engine.shared import DeterministicRandomService, GrantSummary, WinReport
from bingo_engine.shared.enums import WinOutcome
from bingo_engine.shared.identifiers import normalize_game_id

logger = logging.getLogger(__name__)


class BingoEngine:
    """Facade bundling registry, ledger, board generation and win handling."""

    def __init__(
        self,
        registry: DefinitionRegistry,
        store: ProgressStore,
        hooks: HostHooks,
        *,
        settings: EngineSettings | None = None,
        rng_service: DeterministicRandomService | None = None,
    ) -> None:
        config = settings or get_settings()
        rng = rng_service or DeterministicRandomService(config.rng_seed)
        self.registry = registry
        self.store = store
        self.hooks = hooks
        self.boards = BoardGenerator(
            registry,
            store,
            rng_service=rng,
            min_challenges=config.min_challenges,
        )
        self.win_evaluator = WinEvaluator(registry, store, hooks, rng_service=rng)
        self.ingestion = IngestionFacade(
            registry,
            store,
            self.boards,
            self.win_evaluator,
            species_namespace=config.default_species_namespace,
            item_namespace=config.default_item_namespace,
        )

    @classmethod
    def create_default(
        cls,
        source: DefinitionSource,
        *,
        hooks: HostHooks | None = None,
        snapshot_store: SnapshotStore | None = None,
        settings: EngineSettings | None = None,
    ) -> BingoEngine:
        """Return an engine with definitions loaded and the ledger restored."""
        config = settings or get_settings()
        registry = DefinitionRegistry(
            source, preserve_runtime_toggles=config.preserve_runtime_toggles
        )
        registry.reload()
        snapshot = snapshot_store.load_snapshot() if snapshot_store else None
        store = (
            ProgressStore.from_snapshot(snapshot)
            if snapshot is not None
            else ProgressStore()
        )
        return cls(
            registry,
            store,
            hooks or RecordingHostHooks(),
            settings=config,
        )

    # Definitions

    def reload(self) -> frozenset[str]:
        """Reload every game definition from the source."""
        return self.registry.reload()

    def set_game_active(self, game_id: str, active: bool) -> bool:
        """Enable or disable *game_id* at runtime; ``False`` if unknown."""
        return self.registry.set_active(game_id, active)

    # Boards

    def ensure_board(self, player_id: str, game_id: str) -> Board | None:
        return self.boards.ensure_board(player_id, game_id)

    def board_view(self, player_id: str, game_id: str) -> tuple[BoardSlotView, ...]:
        """Describe the player's board slot by slot, or ``()`` if it cannot open."""
        game_key = normalize_game_id(game_id)
        definition = self.registry.get(game_key)
        if definition is None:
            return ()
        board = self.boards.ensure_board(player_id, game_key, definition=definition)
        if board is None:
            return ()

        slots: list[BoardSlotView] = []
        for index, challenge_id in enumerate(board):
            challenge = definition.get_challenge(challenge_id)
            if challenge is None:
                slots.append(BoardSlotView(index=index))
                continue
            completed = self.store.is_completed(player_id, game_key, challenge.id)
            progress = self.store.get_progress(player_id, game_key, challenge.id)
            if completed:
                progress = max(progress, challenge.goal)
            slots.append(
                BoardSlotView(
                    index=index,
                    challenge_id=challenge.id,
                    display_name=challenge.display_name,
                    progress=progress,
                    goal=challenge.goal,
                    completed=completed,
                )
            )
        return tuple(slots)

    # Wins

    def evaluate(self, player_id: str, game_id: str) -> WinOutcome:
        return self.win_evaluator.evaluate(player_id, game_id)

    def check_and_handle_win(
        self, player_id: str, game_id: str, *, player_name: str | None = None
    ) -> WinReport:
        return self.win_evaluator.check_and_handle_win(
            player_id, game_id, player_name=player_name
        )

    # Admin grants

    def grant_progress(
        self,
        player_id: str,
        game_id: str,
        challenge_id: str,
        amount: int,
        *,
        player_name: str | None = None,
    ) -> bool:
        return self.ingestion.grant_progress(
            player_id, game_id, challenge_id, amount, player_name=player_name
        )

    def grant_progress_all_games(
        self,
        player_id: str,
        challenge_id: str,
        amount: int,
        *,
        player_name: str | None = None,
    ) -> GrantSummary:
        """Grant *amount* toward *challenge_id* in every active game defining it."""
        summary = self.ingestion.grant_progress_all_games(
            player_id, challenge_id, amount, player_name=player_name
        )
        logger.info(
            "Granted %d toward '%s' for %s: %d/%d games applied",
            amount,
            challenge_id,
            player_id,
            summary.applied,
            summary.matched,
        )
        return summary

    # Resets

    def reset_game_for_player(self, player_id: str, game_id: str) -> None:
        self.store.reset_game_for_player(player_id, game_id)

    def reset_game_for_all_players(self, game_id: str) -> None:
        self.store.reset_game_for_all_players(game_id)
        logger.info("Reset bingo '%s' for all players", normalize_game_id(game_id))

    def reset_all_games_for_player(self, player_id: str) -> None:
        self.store.reset_all_games_for_player(player_id)
        self.ingestion.forget_player(player_id)

    def reset_challenge_for_player(
        self, player_id: str, challenge_id: str, game_id: str | None = None
    ) -> None:
        self.store.reset_challenge_for_player(player_id, challenge_id, game_id)

    def reset_challenge_for_all_players(
        self, challenge_id: str, game_id: str | None = None
    ) -> None:
        self.store.reset_challenge_for_all_players(challenge_id, game_id)

    def prune_orphans(self) -> int:
        """Remove ledger entries for games or challenges no longer defined."""
        known = {
            definition.game_id: definition.challenge_ids
            for definition in self.registry.definitions()
        }
        removed = self.store.prune_orphans(known)
        if removed:
            logger.info("Pruned %d orphaned progress entries", removed)
        return removed

    # Persistence

    def flush(self, snapshot_store: SnapshotStore) -> bool:
        """Save the ledger when it changed; returns ``True`` if a save happened."""
        if not self.store.dirty:
            return False
        snapshot_store.save_snapshot(self.store.to_snapshot())
        self.store.clear_dirty()
        return True


__all__ = ["BingoEngine"]
