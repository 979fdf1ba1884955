"""Game definition models: rule sets, challenges and weighted rewards.

Definitions are immutable once loaded. The models accept both the camelCase
vocabulary used by definition documents (``isRandomized``, ``onCompletion``,
``pokemonType`` ...) and snake_case field names.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, PrivateAttr, field_validator
from pydantic.config import ConfigDict

from bingo_engine.shared.enums import ChallengeType, LineType
from bingo_engine.shared.identifiers import (
    normalize_challenge_id,
    normalize_game_id,
)

BOARD_SIZE = 25
DEFAULT_COMPLETION_MESSAGE = "&a%player% completed &e%game%&a!"


def _none_to_empty(value: Any) -> Any:
    return () if value is None else value


class ChallengeProperties(BaseModel):
    """Type-specific matching parameters and optional environment filters."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pokemon_type: tuple[str, ...] = Field(default=(), alias="pokemonType")
    pokemon: tuple[str, ...] = ()
    item: str | None = None
    number: int | None = None
    dimension: str | None = None
    is_raining: bool | None = Field(default=None, alias="isRaining")
    x: int | None = None
    y: int | None = None
    z: int | None = None

    @field_validator("pokemon_type", "pokemon", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @property
    def has_target(self) -> bool:
        """Return ``True`` when all three enter-area coordinates are set."""
        return self.x is not None and self.y is not None and self.z is not None


class Challenge(BaseModel):
    """A single objective placed on a bingo board."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    name: str | None = None
    challenge_type: str = Field(default=ChallengeType.PLACEHOLDER.value, alias="type")
    weight: int | None = None
    slot: int | None = None
    properties: ChallengeProperties | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _trim_id(cls, value: Any) -> str:
        return normalize_challenge_id(value)

    @field_validator("challenge_type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> str:
        if value is None:
            return ChallengeType.PLACEHOLDER.value
        return str(value).strip().lower()

    @property
    def goal(self) -> int:
        """Return the positive progress goal (``properties.number``, default 1)."""
        if self.properties is not None and self.properties.number is not None:
            if self.properties.number > 0:
                return self.properties.number
        return 1

    @property
    def display_name(self) -> str:
        """Return the display name, falling back to the identifier."""
        return self.name or self.id

    def is_type(self, challenge_type: ChallengeType) -> bool:
        """Return ``True`` when this challenge has *challenge_type*."""
        return self.challenge_type == challenge_type.value

    @property
    def is_ambiguous_catch(self) -> bool:
        """Return ``True`` for catch rules listing both species and types."""
        props = self.properties
        return props is not None and bool(props.pokemon) and bool(props.pokemon_type)


class WeightedAction(BaseModel):
    """Reward action payload with its selection weight."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    action: str | None = Field(default=None, alias="command")
    weight: int | None = None

    @property
    def has_payload(self) -> bool:
        """Return ``True`` when the action carries a non-blank payload."""
        return bool(self.action and self.action.strip())


class GameDefinition(BaseModel):
    """Immutable rule set for one bingo game."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, revalidate_instances="always"
    )

    game_id: str = ""
    name: str = "Bingo"
    randomized: bool = Field(default=False, alias="isRandomized")
    active: bool = Field(default=True, alias="isActive")
    reset_on_completion: bool = Field(default=True, alias="doesResetOnCompletion")
    disable_on_completion: bool = Field(default=False, alias="disableOnCompletion")
    line_types: tuple[str, ...] = Field(default=(), alias="completion")
    completion_message: str | None = Field(
        default=DEFAULT_COMPLETION_MESSAGE, alias="completionMessage"
    )
    rewards: tuple[WeightedAction, ...] = Field(default=(), alias="onCompletion")
    challenges: tuple[Challenge, ...] = ()

    _challenge_index: dict[str, Challenge] = PrivateAttr(default_factory=dict)
    _has_catch: bool = PrivateAttr(default=False)
    _has_collect: bool = PrivateAttr(default=False)
    _has_enter_area: bool = PrivateAttr(default=False)

    @field_validator("line_types", "rewards", "challenges", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @field_validator("game_id", mode="before")
    @classmethod
    def _normalize_game_id(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return ""
        return normalize_game_id(str(value))

    def model_post_init(self, context: Any, /) -> None:
        """Build the lookup index and per-category flags once per definition."""
        index: dict[str, Challenge] = {}
        for challenge in self.challenges:
            if challenge.id:
                index[challenge.id] = challenge
            if challenge.is_type(ChallengeType.CATCH):
                self._has_catch = True
            elif challenge.is_type(ChallengeType.ENTER_AREA):
                self._has_enter_area = True
            elif challenge.is_type(ChallengeType.COLLECT):
                props = challenge.properties
                if props is not None and props.item and props.item.strip():
                    self._has_collect = True
        self._challenge_index = index

    @property
    def has_catch_challenges(self) -> bool:
        return self._has_catch

    @property
    def has_collect_challenges(self) -> bool:
        return self._has_collect

    @property
    def has_enter_area_challenges(self) -> bool:
        return self._has_enter_area

    @property
    def challenge_ids(self) -> frozenset[str]:
        """Return the identifiers of all addressable challenges."""
        return frozenset(self._challenge_index)

    def get_challenge(self, challenge_id: str | None) -> Challenge | None:
        """Return the challenge with *challenge_id* or ``None``."""
        key = normalize_challenge_id(challenge_id)
        if not key:
            return None
        return self._challenge_index.get(key)

    def can_open_board(self, min_challenges: int = BOARD_SIZE) -> bool:
        """Return ``True`` when the definition has enough challenges for a board."""
        return len(self.challenges) >= min_challenges


def build_placeholder_definition(game_id: str | None = None) -> GameDefinition:
    """Return a definition with 25 placeholder challenges on fixed slots."""
    challenges = tuple(
        Challenge(
            id=f"placeholder_{index + 1}",
            name=f"Placeholder #{index + 1}",
            challenge_type=ChallengeType.PLACEHOLDER,
            slot=index,
            weight=1,
        )
        for index in range(BOARD_SIZE)
    )
    return GameDefinition(
        game_id=normalize_game_id(game_id),
        name="Default Bingo",
        line_types=tuple(line.value for line in LineType),
        challenges=challenges,
    )


__all__ = [
    "BOARD_SIZE",
    "DEFAULT_COMPLETION_MESSAGE",
    "Challenge",
    "ChallengeProperties",
    "GameDefinition",
    "WeightedAction",
    "build_placeholder_definition",
]
