"""Board assignment for players.

A board is an ordered tuple of 25 challenge ids (row-major, an empty string
marks a slot without a challenge). Boards are generated once per player and
game and persisted in the :class:`ProgressStore`; later calls return the
stored board unchanged until a reset removes it.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from bingo_engine.game_logic.definitions import BOARD_SIZE, GameDefinition
from bingo_engine.game_logic.progress import Board, ProgressStore  # noqa: TC001
from bingo_engine.game_logic.registry import DefinitionRegistry  # noqa: TC001
from bingo_engine.shared.identifiers import normalize_game_id
from bingo_engine.shared.rng import DeterministicRandomService

logger = logging.getLogger(__name__)


class BoardSlotView(BaseModel):
    """Read model describing one board slot for rendering hosts."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, lt=BOARD_SIZE)
    challenge_id: str = ""
    display_name: str | None = None
    progress: int = Field(default=0, ge=0)
    goal: int = Field(default=1, ge=1)
    completed: bool = False

    @property
    def row(self) -> int:
        return self.index // 5

    @property
    def column(self) -> int:
        return self.index % 5

    @property
    def is_empty(self) -> bool:
        return not self.challenge_id


def generate_board(
    definition: GameDefinition, rng: DeterministicRandomService
) -> Board:
    """Generate a fresh board for *definition* using *rng*."""
    if definition.randomized:
        return _randomized_board(definition, rng)
    return _fixed_slot_board(definition, rng)


def _randomized_board(
    definition: GameDefinition, rng: DeterministicRandomService
) -> Board:
    eligible = [challenge for challenge in definition.challenges if challenge.id]
    if len(eligible) <= BOARD_SIZE:
        chosen = tuple(eligible)
    else:
        chosen = rng.weighted_sample(
            [(challenge, challenge.weight) for challenge in eligible], BOARD_SIZE
        )

    positions = rng.shuffle(range(BOARD_SIZE))
    board = [""] * BOARD_SIZE
    for position, challenge in zip(positions, chosen, strict=False):
        board[position] = challenge.id
    return tuple(board)


def _fixed_slot_board(
    definition: GameDefinition, rng: DeterministicRandomService
) -> Board:
    by_slot: list[list[tuple[str, int | None]]] = [[] for _ in range(BOARD_SIZE)]
    for challenge in definition.challenges:
        if challenge.slot is None or not 0 <= challenge.slot < BOARD_SIZE:
            continue
        by_slot[challenge.slot].append((challenge.id, challenge.weight))

    board: list[str] = []
    for options in by_slot:
        if not options:
            board.append("")
        elif len(options) == 1:
            board.append(options[0][0])
        else:
            board.append(rng.weighted_choice(options) or "")
    return tuple(board)


class BoardGenerator:
    """Ensure every player has a persisted board for the games they play."""

    def __init__(
        self,
        registry: DefinitionRegistry,
        store: ProgressStore,
        *,
        rng_service: DeterministicRandomService | None = None,
        min_challenges: int = BOARD_SIZE,
    ) -> None:
        self._registry = registry
        self._store = store
        self._rng_service = rng_service or DeterministicRandomService()
        self._min_challenges = min_challenges
        self._player_streams: dict[str, DeterministicRandomService] = {}

    def can_open(self, definition: GameDefinition | None) -> bool:
        """Return ``True`` when *definition* exists, is active and is complete."""
        return (
            definition is not None
            and definition.active
            and definition.can_open_board(self._min_challenges)
        )

    def ensure_board(
        self,
        player_id: str,
        game_id: str,
        *,
        definition: GameDefinition | None = None,
    ) -> Board | None:
        """Return the player's board, generating and storing it when missing.

        *definition* lets callers holding a registry snapshot generate from
        that generation instead of the current one. Returns ``None`` when the
        game is unknown, inactive, or has too few challenges to open a board.
        """
        game_key = normalize_game_id(game_id)
        if definition is None:
            definition = self._registry.get(game_key)
        if not self.can_open(definition):
            return None

        existing = self._store.get_board(player_id, game_key)
        if existing is not None and len(existing) == BOARD_SIZE:
            return existing

        board = generate_board(definition, self._stream_for(player_id))
        self._store.set_board(player_id, game_key, board)
        logger.debug(
            "Generated %s board for player %s in '%s'",
            "randomized" if definition.randomized else "fixed-slot",
            player_id,
            game_key,
        )
        return self._store.get_board(player_id, game_key)

    def _stream_for(self, player_id: str) -> DeterministicRandomService:
        stream = self._player_streams.get(player_id)
        if stream is None:
            stream = self._rng_service.stream_for(player_id)
            self._player_streams[player_id] = stream
        return stream


__all__ = ["BoardGenerator", "BoardSlotView", "generate_board"]
