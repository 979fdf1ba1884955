"""Tests for event ingestion and admin grants."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from pydantic import ValidationError

from bingo_engine.game_logic.engine import BingoEngine
from bingo_engine.game_logic.host import RecordingHostHooks
from bingo_engine.game_logic.ingestion import (
    BlockPosition,
    CatchEvent,
    EnvironmentSnapshot,
    InventorySnapshot,
)
from bingo_engine.game_logic.progress import ProgressStore
from bingo_engine.game_logic.registry import (
    DefinitionRegistry,
    DefinitionSnapshot,
    InMemoryDefinitionSource,
)


def fillers(start: int) -> list[dict[str, Any]]:
    return [
        {"id": f"filler_{slot}", "type": "placeholder", "slot": slot}
        for slot in range(start, 25)
    ]


MAIN_DOCUMENT: dict[str, Any] = {
    "name": "Main Bingo",
    "isRandomized": False,
    "doesResetOnCompletion": False,
    "completion": ["horizontal"],
    "onCompletion": [{"command": "give %player% diamond", "weight": 1}],
    "challenges": [
        {
            "id": "catch_pika",
            "type": "catch",
            "slot": 0,
            "properties": {"pokemon": ["Pikachu"], "number": 2},
        },
        {
            "id": "catch_fire",
            "type": "catch",
            "slot": 1,
            "properties": {"pokemonType": ["FIRE"]},
        },
        {
            "id": "catch_rain",
            "type": "catch",
            "slot": 2,
            "properties": {"pokemon": ["squirtle"], "isRaining": True},
        },
        {
            "id": "collect_diamond",
            "type": "collect",
            "slot": 3,
            "properties": {"item": "diamond", "number": 5},
        },
        {
            "id": "visit_spawn",
            "type": "enterarea",
            "slot": 4,
            "properties": {"x": 1, "y": 64, "z": -3},
        },
        {
            "id": "ambiguous",
            "type": "catch",
            "slot": 5,
            "properties": {"pokemon": ["eevee"], "pokemonType": ["normal"]},
        },
        {"id": "custom_task", "type": "custom", "slot": 6},
        *fillers(7),
    ],
}

RUSH_DOCUMENT: dict[str, Any] = {
    "doesResetOnCompletion": True,
    "disableOnCompletion": True,
    "completion": ["horizontal"],
    "onCompletion": [{"command": "give %player% emerald"}],
    "challenges": [
        {
            "id": f"gather_{slot}",
            "type": "collect",
            "slot": slot,
            "properties": {"item": f"minecraft:item_{slot}"},
        }
        for slot in range(5)
    ]
    + fillers(5),
}


@pytest.fixture
def hooks() -> RecordingHostHooks:
    return RecordingHostHooks()


@pytest.fixture
def engine(hooks: RecordingHostHooks) -> BingoEngine:
    source = InMemoryDefinitionSource({"main": MAIN_DOCUMENT, "Rush": RUSH_DOCUMENT})
    return BingoEngine.create_default(source, hooks=hooks)


def test_catch_by_species_counts_toward_goal(engine: BingoEngine) -> None:
    first = engine.ingestion.report_catch("p1", CatchEvent(species_id="Pikachu"))
    assert first.changed
    assert not first.completed_any
    assert first.changed_games == ("main",)
    assert engine.store.get_progress("p1", "main", "catch_pika") == 1

    second = engine.ingestion.report_catch(
        "p1", CatchEvent(species_id="cobblemon:pikachu")
    )
    assert second.completed_any
    assert engine.store.is_completed("p1", "main", "catch_pika")

    third = engine.ingestion.report_catch("p1", CatchEvent(species_id="pikachu"))
    assert not third.changed
    assert engine.store.get_progress("p1", "main", "catch_pika") == 2


def test_catch_by_type_is_case_insensitive(engine: BingoEngine) -> None:
    result = engine.ingestion.report_catch(
        "p1", CatchEvent(species_id="charmander", types=("Fire",))
    )
    assert result.completed_any
    assert engine.store.is_completed("p1", "main", "catch_fire")


def test_ambiguous_catch_never_matches(engine: BingoEngine) -> None:
    result = engine.ingestion.report_catch(
        "p1", CatchEvent(species_id="eevee", types=("normal",))
    )
    assert not result.changed
    assert engine.store.get_progress("p1", "main", "ambiguous") == 0


def test_environment_predicate_filters_challenges(engine: BingoEngine) -> None:
    dry = EnvironmentSnapshot(dimension="minecraft:overworld", is_raining=False)
    wet = EnvironmentSnapshot(dimension="minecraft:overworld", is_raining=True)

    skipped = engine.ingestion.report_catch(
        "p1", CatchEvent(species_id="squirtle"), environment=dry.matches
    )
    assert not skipped.changed

    counted = engine.ingestion.report_catch(
        "p1", CatchEvent(species_id="squirtle"), environment=wet.matches
    )
    assert counted.completed_any
    assert engine.store.is_completed("p1", "main", "catch_rain")


def test_collect_progress_is_monotonic(engine: BingoEngine) -> None:
    engine.ingestion.report_inventory(
        "p1", InventorySnapshot(counts={"minecraft:diamond": 3})
    )
    assert engine.store.get_progress("p1", "main", "collect_diamond") == 3

    fewer = engine.ingestion.report_inventory(
        "p1", InventorySnapshot(counts={"diamond": 1})
    )
    assert not fewer.changed
    assert engine.store.get_progress("p1", "main", "collect_diamond") == 3

    more = engine.ingestion.report_inventory(
        "p1", InventorySnapshot(counts={"DIAMOND": 9}), game_id="main"
    )
    assert more.completed_any
    assert engine.store.get_progress("p1", "main", "collect_diamond") == 5
    assert engine.store.is_completed("p1", "main", "collect_diamond")


def test_enter_area_requires_exact_position(engine: BingoEngine) -> None:
    near = engine.ingestion.report_position("p1", BlockPosition(x=1, y=65, z=-3))
    assert not near.changed

    hit = engine.ingestion.report_position("p1", BlockPosition(x=1, y=64, z=-3))
    assert hit.completed_any
    assert engine.store.get_progress("p1", "main", "visit_spawn") == 1


def test_enter_area_ignores_repeated_position(engine: BingoEngine) -> None:
    spawn = BlockPosition(x=1, y=64, z=-3)
    engine.ingestion.report_position("p1", spawn)
    engine.reset_challenge_for_player("p1", "visit_spawn", "main")

    repeated = engine.ingestion.report_position("p1", spawn)
    assert not repeated.changed

    engine.ingestion.forget_player("p1")
    again = engine.ingestion.report_position("p1", spawn)
    assert again.completed_any


def test_block_position_rejects_non_integers() -> None:
    with pytest.raises(ValidationError):
        BlockPosition(x=1.5, y=64, z=0)
    with pytest.raises(ValidationError):
        BlockPosition(x=True, y=64, z=0)


def test_win_is_checked_once_per_ingestion(
    engine: BingoEngine, hooks: RecordingHostHooks
) -> None:
    engine.ingestion.report_catch("p1", CatchEvent(species_id="pikachu"))
    engine.ingestion.report_catch(
        "p1",
        CatchEvent(species_id="squirtle"),
        environment=EnvironmentSnapshot(is_raining=True).matches,
    )
    engine.ingestion.report_inventory(
        "p1", InventorySnapshot(counts={"diamond": 64})
    )
    engine.ingestion.report_position("p1", BlockPosition(x=1, y=64, z=-3))
    assert hooks.broadcasts == []

    result = engine.ingestion.report_catch(
        "p1",
        CatchEvent(species_id="pikachu", types=("fire",)),
        player_name="Ash",
    )

    assert result.completed_any
    assert len(result.wins) == 1
    assert result.wins[0].won
    assert hooks.rewards == [("p1", "give %player% diamond")]
    assert hooks.broadcasts == ["&aAsh completed &emain&a!"]
    assert engine.store.has_claimed_reward("p1", "main")


def test_reset_mode_win_through_inventory(
    engine: BingoEngine, hooks: RecordingHostHooks
) -> None:
    engine.ensure_board("p2", "rush")
    counts = {f"item_{slot}": 1 for slot in range(5)}

    result = engine.ingestion.report_inventory(
        "p1", InventorySnapshot(counts=counts), game_id="RUSH"
    )

    assert result.changed_games == ("rush",)
    assert len(result.wins) == 1
    report = result.wins[0]
    assert report.reset_all_players
    assert report.disabled_game
    assert hooks.rewards == [("p1", "give %player% emerald")]
    assert hooks.broadcasts == []
    assert engine.store.get_board("p1", "rush") is None
    assert engine.store.get_board("p2", "rush") is None
    assert engine.ensure_board("p1", "rush") is None

    ignored = engine.ingestion.report_inventory(
        "p1", InventorySnapshot(counts=counts), game_id="rush"
    )
    assert not ignored.changed


def test_games_without_category_are_skipped(engine: BingoEngine) -> None:
    engine.ingestion.report_catch("p1", CatchEvent(species_id="pikachu"))
    assert engine.store.get_board("p1", "main") is not None
    assert engine.store.get_board("p1", "rush") is None


def test_grant_progress_clamps_and_completes(engine: BingoEngine) -> None:
    assert engine.ingestion.grant_progress("p1", "main", "catch_pika", 5)
    assert engine.store.get_progress("p1", "main", "catch_pika") == 2
    assert engine.store.is_completed("p1", "main", "catch_pika")
    engine.store.clear_dirty()

    assert not engine.ingestion.grant_progress("p1", "main", "catch_pika", 1)
    assert engine.store.get_progress("p1", "main", "catch_pika") == 2
    assert engine.store.dirty is False


def test_grant_progress_ignores_type_and_environment(engine: BingoEngine) -> None:
    assert engine.ingestion.grant_progress("p1", "Main", "custom_task", 1)
    assert engine.store.is_completed("p1", "main", "custom_task")
    assert engine.store.get_board("p1", "main") is not None


def test_grant_progress_rejects_invalid_targets(engine: BingoEngine) -> None:
    assert not engine.ingestion.grant_progress("p1", "main", "missing", 1)
    assert not engine.ingestion.grant_progress("p1", "nowhere", "catch_pika", 1)
    assert not engine.ingestion.grant_progress("p1", "main", "catch_pika", 0)
    engine.set_game_active("main", False)
    assert not engine.ingestion.grant_progress("p1", "main", "catch_pika", 1)
    assert engine.store.known_players() == frozenset()


def test_grant_progress_across_games(engine: BingoEngine) -> None:
    summary = engine.ingestion.grant_progress_all_games("p1", "filler_7", 1)
    assert (summary.attempted, summary.matched, summary.applied) == (2, 2, 2)

    repeat = engine.ingestion.grant_progress_all_games("p1", "filler_7", 1)
    assert (repeat.attempted, repeat.matched, repeat.applied) == (2, 2, 0)

    engine.set_game_active("rush", False)
    partial = engine.ingestion.grant_progress_all_games("p1", "custom_task", 1)
    assert (partial.attempted, partial.matched, partial.applied) == (2, 1, 1)


def visit_document(challenge_id: str) -> dict[str, Any]:
    return {
        "doesResetOnCompletion": False,
        "challenges": [
            {
                "id": challenge_id,
                "type": "enterarea",
                "slot": 0,
                "properties": {"x": 1, "y": 2, "z": 3},
            },
            *fillers(1),
        ],
    }


class ReloadAfterSnapshotRegistry(DefinitionRegistry):
    """Registry that reloads right after handing out the current generation."""

    before_reload: Callable[[], None] | None = None

    def snapshot(self) -> DefinitionSnapshot:
        current = super().snapshot()
        if self.before_reload is not None:
            before_reload, self.before_reload = self.before_reload, None
            before_reload()
            self.reload()
        return current


def test_same_position_counts_separately_per_game() -> None:
    source = InMemoryDefinitionSource(
        {"a": visit_document("visit"), "b": visit_document("visit")}
    )
    engine = BingoEngine.create_default(source)
    target = BlockPosition(x=1, y=2, z=3)

    first = engine.ingestion.report_position("p1", target, game_id="a")
    second = engine.ingestion.report_position("p1", target, game_id="b")

    assert first.completed_any
    assert second.completed_any
    assert engine.store.is_completed("p1", "a", "visit")
    assert engine.store.is_completed("p1", "b", "visit")


def test_ingestion_uses_one_definition_generation() -> None:
    source = InMemoryDefinitionSource({"g": visit_document("old_visit")})
    registry = ReloadAfterSnapshotRegistry(source)
    registry.reload()
    engine = BingoEngine(registry, ProgressStore(), RecordingHostHooks())
    registry.before_reload = lambda: source.put("g", visit_document("new_visit"))

    result = engine.ingestion.report_position("p1", BlockPosition(x=1, y=2, z=3))

    assert result.completed_any
    board = engine.store.get_board("p1", "g")
    assert board is not None
    assert board[0] == "old_visit"
    assert engine.store.is_completed("p1", "g", "old_visit")
    reloaded = engine.registry.get("g")
    assert reloaded is not None
    assert reloaded.get_challenge("new_visit") is not None
