"""Win-line detection and the win-handling policy."""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterable, Sequence  # noqa: TC003

from bingo_engine.game_logic.definitions import BOARD_SIZE, GameDefinition
from bingo_engine.game_logic.host import HostHooks  # noqa: TC001
from bingo_engine.game_logic.progress import ProgressStore  # noqa: TC001
from bingo_engine.game_logic.registry import DefinitionRegistry  # noqa: TC001
from bingo_engine.shared.enums import LineType, WinOutcome
from bingo_engine.shared.events import WinReport
from bingo_engine.shared.identifiers import normalize_game_id
from bingo_engine.shared.rng import DeterministicRandomService

logger = logging.getLogger(__name__)

_SIDE = 5


def parse_line_types(raw: Iterable[str | None]) -> frozenset[LineType]:
    """Return the allowed line types; an empty allow-list enables all of them.

    Unknown names are ignored, so a list made only of unknown names allows
    no line at all.
    """
    names = list(raw)
    if not names:
        return frozenset(LineType)
    allowed: set[LineType] = set()
    for name in names:
        if name is None:
            continue
        try:
            allowed.add(LineType(name.strip().lower()))
        except ValueError:
            continue
    return frozenset(allowed)


def completion_grid(
    board: Sequence[str], is_completed: Callable[[str], bool]
) -> tuple[bool, ...]:
    """Map a board to a row-major grid of completion flags.

    Empty slots are never complete.
    """
    return tuple(bool(cell) and is_completed(cell) for cell in board)


def has_line(done: Sequence[bool], allowed: Collection[LineType]) -> bool:
    """Return ``True`` when *done* contains a full line of an allowed type."""
    if len(done) != BOARD_SIZE:
        return False
    if LineType.HORIZONTAL in allowed:
        for row in range(_SIDE):
            if all(done[row * _SIDE + col] for col in range(_SIDE)):
                return True
    if LineType.VERTICAL in allowed:
        for col in range(_SIDE):
            if all(done[row * _SIDE + col] for row in range(_SIDE)):
                return True
    if LineType.DIAGONAL in allowed:
        main = all(done[i * _SIDE + i] for i in range(_SIDE))
        anti = all(done[i * _SIDE + (_SIDE - 1 - i)] for i in range(_SIDE))
        return main or anti
    return False


def render_completion_message(
    template: str | None, player_name: str, game_id: str
) -> str | None:
    """Substitute ``%player%`` and ``%game%``; color codes are left as-is."""
    if template is None or not template.strip():
        return None
    return template.replace("%player%", player_name).replace("%game%", game_id)


class WinEvaluator:
    """Detect completed lines and apply the game's win-handling policy."""

    def __init__(
        self,
        registry: DefinitionRegistry,
        store: ProgressStore,
        hooks: HostHooks,
        *,
        rng_service: DeterministicRandomService | None = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._hooks = hooks
        self._rng_service = rng_service or DeterministicRandomService()

    def evaluate(
        self,
        player_id: str,
        game_id: str,
        *,
        definition: GameDefinition | None = None,
    ) -> WinOutcome:
        """Return whether the player's board holds a completed allowed line."""
        game_key = normalize_game_id(game_id)
        if definition is None:
            definition = self._registry.get(game_key)
        if definition is None:
            return WinOutcome.NONE
        board = self._store.get_board(player_id, game_key)
        if board is None or len(board) != BOARD_SIZE:
            return WinOutcome.NONE

        done = completion_grid(
            board,
            lambda challenge_id: self._store.is_completed(
                player_id, game_key, challenge_id
            ),
        )
        if has_line(done, parse_line_types(definition.line_types)):
            return WinOutcome.LINE_COMPLETED
        return WinOutcome.NONE

    def select_reward(self, definition: GameDefinition) -> str | None:
        """Pick one reward action by weight, ignoring actions without payload."""
        candidates = [
            (reward.action, reward.weight)
            for reward in definition.rewards
            if reward.has_payload
        ]
        if not candidates:
            return None
        return self._rng_service.weighted_choice(candidates)

    def check_and_handle_win(
        self,
        player_id: str,
        game_id: str,
        *,
        player_name: str | None = None,
        definition: GameDefinition | None = None,
    ) -> WinReport:
        """Evaluate the board and, on a completed line, apply the win policy.

        Reset-on-completion games reward the winner and wipe the game for all
        players. Other games reward and announce each player once until an
        explicit reset clears their claim.
        """
        game_key = normalize_game_id(game_id)
        if definition is None:
            definition = self._registry.get(game_key)
        if definition is None:
            return WinReport(player_id=player_id, game_id=game_key)
        outcome = self.evaluate(player_id, game_key, definition=definition)
        if outcome is WinOutcome.NONE:
            return WinReport(player_id=player_id, game_id=game_key)

        if definition.reset_on_completion:
            return self._handle_reset_win(player_id, game_key, definition)
        return self._handle_persistent_win(
            player_id, game_key, definition, player_name or player_id
        )

    def _handle_reset_win(
        self, player_id: str, game_key: str, definition: GameDefinition
    ) -> WinReport:
        reward = self._grant_reward(player_id, definition)
        self._store.reset_game_for_all_players(game_key)
        disabled = self._disable_if_configured(game_key, definition)
        logger.info(
            "Player %s won '%s'; game reset for all players", player_id, game_key
        )
        return WinReport(
            player_id=player_id,
            game_id=game_key,
            outcome=WinOutcome.LINE_COMPLETED,
            reward_action=reward,
            reset_all_players=True,
            disabled_game=disabled,
        )

    def _handle_persistent_win(
        self,
        player_id: str,
        game_key: str,
        definition: GameDefinition,
        player_name: str,
    ) -> WinReport:
        reward: str | None = None
        message: str | None = None
        if not self._store.has_claimed_reward(player_id, game_key):
            self._store.mark_claimed_reward(player_id, game_key)
            reward = self._grant_reward(player_id, definition)
            message = render_completion_message(
                definition.completion_message, player_name, game_key
            )
            if message is not None:
                self._hooks.broadcast(message)
            logger.info("Player %s completed '%s'", player_id, game_key)
        disabled = self._disable_if_configured(game_key, definition)
        return WinReport(
            player_id=player_id,
            game_id=game_key,
            outcome=WinOutcome.LINE_COMPLETED,
            reward_action=reward,
            broadcast_message=message,
            disabled_game=disabled,
        )

    def _grant_reward(self, player_id: str, definition: GameDefinition) -> str | None:
        reward = self.select_reward(definition)
        if reward is None:
            if definition.rewards:
                logger.warning(
                    "No reward action with a payload in '%s'", definition.game_id
                )
            return None
        self._hooks.perform_reward(player_id, reward)
        return reward

    def _disable_if_configured(self, game_key: str, definition: GameDefinition) -> bool:
        if not definition.disable_on_completion:
            return False
        return self._registry.set_active(game_key, False)


__all__ = [
    "WinEvaluator",
    "completion_grid",
    "has_line",
    "parse_line_types",
    "render_completion_message",
]
