"""Entry points through which the host reports gameplay events.

Each report names a player, carries a category-specific payload and targets
either one game or every loaded game. For every active game with challenges of
the reported category the player's board is resolved, matching challenges
advance, and the win policy runs once per game when anything completed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from bingo_engine.game_logic.board import BoardGenerator  # noqa: TC001
from bingo_engine.game_logic.definitions import Challenge, GameDefinition
from bingo_engine.game_logic.progress import ProgressStore  # noqa: TC001
from bingo_engine.game_logic.registry import DefinitionRegistry  # noqa: TC001
from bingo_engine.game_logic.win import WinEvaluator  # noqa: TC001
from bingo_engine.shared.enums import ChallengeType
from bingo_engine.shared.events import GrantSummary, IngestionResult
from bingo_engine.shared.identifiers import (
    normalize_game_id,
    normalize_namespaced_id,
    normalize_type_name,
)

logger = logging.getLogger(__name__)

EnvironmentPredicate = Callable[[Challenge], bool]


class CatchEvent(BaseModel):
    """A captured creature: its species id and elemental type names."""

    model_config = ConfigDict(frozen=True)

    species_id: str | None = None
    types: tuple[str, ...] = Field(default_factory=tuple)


class InventorySnapshot(BaseModel):
    """Item counts currently held by a player, keyed by item id."""

    model_config = ConfigDict(frozen=True)

    counts: Mapping[str, int] = Field(default_factory=dict)

    def normalized(self, default_namespace: str) -> dict[str, int]:
        """Return counts keyed by canonical ``namespace:name`` ids."""
        totals: dict[str, int] = {}
        for item_id, count in self.counts.items():
            key = normalize_namespaced_id(item_id, default_namespace)
            if key is None:
                continue
            totals[key] = totals.get(key, 0) + count
        return totals


class BlockPosition(BaseModel):
    """Integer block coordinates of a player."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    z: int

    @field_validator("x", "y", "z", mode="before")
    @classmethod
    def _require_int(cls, value: object) -> object:
        if isinstance(value, bool) or not isinstance(value, int):
            msg = "Block coordinates must be integers."
            raise ValueError(msg)
        return value


class EnvironmentSnapshot(BaseModel):
    """Environment readings the host sampled for a player."""

    model_config = ConfigDict(frozen=True)

    dimension: str | None = None
    is_raining: bool | None = None

    def matches(self, challenge: Challenge) -> bool:
        """Return ``True`` when *challenge*'s environment filters are satisfied."""
        if challenge.is_type(ChallengeType.CUSTOM) or challenge.properties is None:
            return True
        props = challenge.properties
        if props.dimension is not None and props.dimension.strip():
            if self.dimension != props.dimension.strip():
                return False
        if props.is_raining is not None and self.is_raining != props.is_raining:
            return False
        return True


_Step = Callable[[str, str, Challenge], tuple[bool, bool]]


class IngestionFacade:
    """Apply reported events to the progress ledger and trigger win checks."""

    def __init__(
        self,
        registry: DefinitionRegistry,
        store: ProgressStore,
        boards: BoardGenerator,
        win_evaluator: WinEvaluator,
        *,
        species_namespace: str = "cobblemon",
        item_namespace: str = "minecraft",
    ) -> None:
        self._registry = registry
        self._store = store
        self._boards = boards
        self._win_evaluator = win_evaluator
        self._species_namespace = species_namespace
        self._item_namespace = item_namespace
        self._last_positions: dict[tuple[str, str], BlockPosition] = {}

    def report_catch(
        self,
        player_id: str,
        event: CatchEvent,
        *,
        game_id: str | None = None,
        environment: EnvironmentPredicate | None = None,
        player_name: str | None = None,
    ) -> IngestionResult:
        """Advance catch challenges matching the captured species or type."""
        species = normalize_namespaced_id(event.species_id, self._species_namespace)
        types = {
            name
            for name in (normalize_type_name(raw) for raw in event.types)
            if name is not None
        }

        def step(player: str, game_key: str, challenge: Challenge) -> tuple[bool, bool]:
            if not self._catch_matches(challenge, species, types):
                return False, False
            goal = challenge.goal
            if self._store.get_progress(player, game_key, challenge.id) >= goal:
                return False, False
            self._store.add_progress(player, game_key, challenge.id, 1)
            after = self._store.get_progress(player, game_key, challenge.id)
            return True, self._complete_if_reached(player, game_key, challenge, after)

        return self._ingest(
            player_id,
            ChallengeType.CATCH,
            step,
            game_id=game_id,
            environment=environment,
            player_name=player_name,
        )

    def report_inventory(
        self,
        player_id: str,
        snapshot: InventorySnapshot,
        *,
        game_id: str | None = None,
        environment: EnvironmentPredicate | None = None,
        player_name: str | None = None,
    ) -> IngestionResult:
        """Raise collect progress to the held quantity; progress never decreases."""
        held = snapshot.normalized(self._item_namespace)

        def step(player: str, game_key: str, challenge: Challenge) -> tuple[bool, bool]:
            props = challenge.properties
            if props is None:
                return False, False
            item = normalize_namespaced_id(props.item, self._item_namespace)
            if item is None:
                return False, False
            goal = challenge.goal
            previous = self._store.get_progress(player, game_key, challenge.id)
            clamped = min(goal, max(0, held.get(item, 0)))
            following = max(previous, clamped)
            if following == previous:
                return False, False
            self._store.set_progress(player, game_key, challenge.id, following)
            return True, self._complete_if_reached(
                player, game_key, challenge, following
            )

        return self._ingest(
            player_id,
            ChallengeType.COLLECT,
            step,
            game_id=game_id,
            environment=environment,
            player_name=player_name,
        )

    def report_position(
        self,
        player_id: str,
        position: BlockPosition,
        *,
        game_id: str | None = None,
        environment: EnvironmentPredicate | None = None,
        player_name: str | None = None,
    ) -> IngestionResult:
        """Complete enter-area challenges whose target equals *position*.

        A game is skipped when the player's previous report for that game
        carried the same position; the first report for a game always counts.
        """

        def moved(definition: GameDefinition) -> bool:
            key = (player_id, definition.game_id)
            previous = self._last_positions.get(key)
            self._last_positions[key] = position
            return previous != position

        def step(player: str, game_key: str, challenge: Challenge) -> tuple[bool, bool]:
            props = challenge.properties
            if props is None or not props.has_target:
                return False, False
            if (props.x, props.y, props.z) != (position.x, position.y, position.z):
                return False, False
            self._store.set_progress(player, game_key, challenge.id, challenge.goal)
            self._store.mark_completed(player, game_key, challenge.id)
            return True, True

        return self._ingest(
            player_id,
            ChallengeType.ENTER_AREA,
            step,
            game_id=game_id,
            environment=environment,
            player_name=player_name,
            game_filter=moved,
        )

    def forget_player(self, player_id: str) -> None:
        """Drop the remembered positions of a player who left."""
        for key in [key for key in self._last_positions if key[0] == player_id]:
            del self._last_positions[key]

    def grant_progress(
        self,
        player_id: str,
        game_id: str,
        challenge_id: str,
        amount: int,
        *,
        player_name: str | None = None,
    ) -> bool:
        """Add *amount* to a challenge regardless of its type or environment.

        Returns ``False`` without touching state when the game is unknown or
        inactive, the challenge is unknown, or it is already completed.
        """
        definition = self._registry.get(game_id)
        if definition is None:
            return False
        return self._grant(
            player_id, definition, challenge_id, amount, player_name=player_name
        )

    def increment_progress(
        self,
        player_id: str,
        game_id: str,
        challenge_id: str,
        *,
        player_name: str | None = None,
    ) -> bool:
        return self.grant_progress(
            player_id, game_id, challenge_id, 1, player_name=player_name
        )

    def grant_progress_all_games(
        self,
        player_id: str,
        challenge_id: str,
        amount: int,
        *,
        player_name: str | None = None,
    ) -> GrantSummary:
        """Apply :meth:`grant_progress` in every active game defining the challenge."""
        snapshot = self._registry.snapshot()
        attempted = matched = applied = 0
        for game_key in sorted(snapshot.ids):
            attempted += 1
            definition = snapshot.get(game_key)
            if definition is None or not definition.active:
                continue
            if definition.get_challenge(challenge_id) is None:
                continue
            matched += 1
            if self._grant(
                player_id, definition, challenge_id, amount, player_name=player_name
            ):
                applied += 1
        return GrantSummary(attempted=attempted, matched=matched, applied=applied)

    def _grant(
        self,
        player_id: str,
        definition: GameDefinition,
        challenge_id: str,
        amount: int,
        *,
        player_name: str | None,
    ) -> bool:
        if amount <= 0 or not definition.active:
            return False
        challenge = definition.get_challenge(challenge_id)
        if challenge is None:
            return False

        game_key = definition.game_id
        self._boards.ensure_board(player_id, game_key, definition=definition)
        if self._store.is_completed(player_id, game_key, challenge.id):
            return False

        before = self._store.get_progress(player_id, game_key, challenge.id)
        after = min(challenge.goal, before + amount)
        self._store.set_progress(player_id, game_key, challenge.id, after)
        if self._complete_if_reached(player_id, game_key, challenge, after):
            self._win_evaluator.check_and_handle_win(
                player_id, game_key, player_name=player_name, definition=definition
            )
        return True

    def _ingest(
        self,
        player_id: str,
        category: ChallengeType,
        step: _Step,
        *,
        game_id: str | None,
        environment: EnvironmentPredicate | None,
        player_name: str | None,
        game_filter: Callable[[GameDefinition], bool] | None = None,
    ) -> IngestionResult:
        snapshot = self._registry.snapshot()
        if game_id is None:
            game_keys = sorted(snapshot.ids)
        else:
            game_keys = [normalize_game_id(game_id)]

        result = IngestionResult()
        for game_key in game_keys:
            definition = snapshot.get(game_key)
            if definition is None or not definition.active:
                continue
            if not self._has_category(definition, category):
                continue
            if game_filter is not None and not game_filter(definition):
                continue
            result = result.merge(
                self._ingest_game(
                    player_id,
                    definition,
                    category,
                    step,
                    environment=environment,
                    player_name=player_name,
                )
            )
        return result

    def _ingest_game(
        self,
        player_id: str,
        definition: GameDefinition,
        category: ChallengeType,
        step: _Step,
        *,
        environment: EnvironmentPredicate | None,
        player_name: str | None,
    ) -> IngestionResult:
        game_key = definition.game_id
        board = self._boards.ensure_board(player_id, game_key, definition=definition)
        if board is None:
            return IngestionResult()

        changed_any = False
        completed_any = False
        for challenge_id in board:
            if not challenge_id:
                continue
            challenge = definition.get_challenge(challenge_id)
            if challenge is None or not challenge.is_type(category):
                continue
            if environment is not None and not environment(challenge):
                continue
            if self._store.is_completed(player_id, game_key, challenge.id):
                continue
            changed, completed = step(player_id, game_key, challenge)
            changed_any = changed_any or changed
            completed_any = completed_any or completed

        if not changed_any:
            return IngestionResult()
        logger.debug(
            "Player %s progressed %s challenges in '%s' (completed=%s)",
            player_id,
            category.value,
            game_key,
            completed_any,
        )
        wins = ()
        if completed_any:
            report = self._win_evaluator.check_and_handle_win(
                player_id, game_key, player_name=player_name, definition=definition
            )
            wins = (report,)
        return IngestionResult(
            changed=True,
            completed_any=completed_any,
            changed_games=(game_key,),
            wins=wins,
        )

    def _catch_matches(
        self, challenge: Challenge, species: str | None, types: set[str]
    ) -> bool:
        props = challenge.properties
        if props is None or challenge.is_ambiguous_catch:
            return False
        if props.pokemon:
            if species is None:
                return False
            return any(
                normalize_namespaced_id(wanted, self._species_namespace) == species
                for wanted in props.pokemon
            )
        if props.pokemon_type:
            return any(
                normalize_type_name(wanted) in types for wanted in props.pokemon_type
            )
        return False

    def _complete_if_reached(
        self, player_id: str, game_key: str, challenge: Challenge, progress: int
    ) -> bool:
        if progress < challenge.goal:
            return False
        self._store.mark_completed(player_id, game_key, challenge.id)
        return True

    @staticmethod
    def _has_category(definition: GameDefinition, category: ChallengeType) -> bool:
        if category is ChallengeType.CATCH:
            return definition.has_catch_challenges
        if category is ChallengeType.COLLECT:
            return definition.has_collect_challenges
        if category is ChallengeType.ENTER_AREA:
            return definition.has_enter_area_challenges
        return False


__all__ = [
    "BlockPosition",
    "CatchEvent",
    "EnvironmentPredicate",
    "EnvironmentSnapshot",
    "IngestionFacade",
    "InventorySnapshot",
]
