"""End-to-end tests driving the engine facade the way a host would."""

from __future__ import annotations

from bingo_engine import BingoEngine, EngineSettings
from bingo_engine.game_logic import (
    Challenge,
    GameDefinition,
    InMemoryDefinitionSource,
    InMemorySnapshotStore,
    RecordingHostHooks,
    build_placeholder_definition,
)
from bingo_engine.shared import WinOutcome

FIRST_ROW = tuple(f"placeholder_{index}" for index in range(1, 6))


def make_engine(
    *definitions: GameDefinition, snapshot_store: InMemorySnapshotStore | None = None
) -> tuple[BingoEngine, InMemoryDefinitionSource, RecordingHostHooks]:
    source = InMemoryDefinitionSource(
        {definition.game_id: definition for definition in definitions}
    )
    hooks = RecordingHostHooks()
    engine = BingoEngine.create_default(
        source, hooks=hooks, snapshot_store=snapshot_store
    )
    return engine, source, hooks


def test_single_shot_default_game_resets_and_disables() -> None:
    definition = build_placeholder_definition("default").model_copy(
        update={"disable_on_completion": True}
    )
    engine, _, _ = make_engine(definition)
    assert engine.ensure_board("p2", "default") is not None
    engine.ingestion.grant_progress("p2", "default", "placeholder_7", 1)

    for challenge_id in FIRST_ROW[:4]:
        assert engine.ingestion.grant_progress("p1", "default", challenge_id, 1)
    assert engine.evaluate("p1", "default") is WinOutcome.NONE
    assert engine.ingestion.grant_progress("p1", "default", FIRST_ROW[4], 1)

    assert engine.store.known_players() == frozenset()
    assert engine.ensure_board("p1", "default") is None
    assert engine.board_view("p1", "default") == ()

    assert engine.set_game_active("default", True)
    board = engine.ensure_board("p1", "default")
    assert board is not None
    assert board[:5] == FIRST_ROW


def test_manual_win_check_reports_line() -> None:
    definition = build_placeholder_definition("default").model_copy(
        update={"reset_on_completion": False}
    )
    engine, _, hooks = make_engine(definition)
    engine.ensure_board("p1", "default")
    for index in (1, 7, 13, 19, 25):
        engine.store.mark_completed("p1", "default", f"placeholder_{index}")

    report = engine.check_and_handle_win("p1", "default", player_name="Misty")

    assert report.won
    assert report.broadcast_message == "&aMisty completed &edefault&a!"
    assert hooks.broadcasts == ["&aMisty completed &edefault&a!"]


def test_board_view_describes_each_slot() -> None:
    challenges = tuple(
        Challenge(id=f"task_{slot}", name=f"Task {slot}", slot=slot)
        for slot in range(24)
    ) + (
        Challenge.model_validate(
            {"id": "haul", "type": "collect", "properties": {"item": "stone"}}
        ),
        Challenge(id="stones", slot=24, properties={"number": 3}),
    )
    engine, _, _ = make_engine(
        GameDefinition(
            game_id="view", reset_on_completion=False, challenges=challenges
        )
    )
    engine.ingestion.grant_progress("p1", "view", "stones", 2)
    engine.ingestion.grant_progress("p1", "view", "task_0", 1)

    view = engine.board_view("p1", "VIEW")

    assert len(view) == 25
    assert view[0].completed
    assert view[0].display_name == "Task 0"
    assert view[24].challenge_id == "stones"
    assert (view[24].progress, view[24].goal, view[24].completed) == (2, 3, False)
    assert (view[24].row, view[24].column) == (4, 4)
    assert all(not slot.is_empty for slot in view)
    assert engine.board_view("p1", "missing") == ()


def test_flush_and_restore_round_trip() -> None:
    snapshots = InMemorySnapshotStore()
    definition = build_placeholder_definition("default").model_copy(
        update={"reset_on_completion": False}
    )
    engine, source, _ = make_engine(definition, snapshot_store=snapshots)

    assert engine.flush(snapshots) is False
    engine.ingestion.grant_progress("p1", "default", "placeholder_3", 1)
    assert engine.flush(snapshots) is True
    assert engine.flush(snapshots) is False
    assert snapshots.save_count == 1

    restored = BingoEngine.create_default(source, snapshot_store=snapshots)

    assert restored.store.is_completed("p1", "default", "placeholder_3")
    assert restored.ensure_board("p1", "default") == engine.ensure_board(
        "p1", "default"
    )


def test_prune_orphans_after_definition_change() -> None:
    definition = build_placeholder_definition("default").model_copy(
        update={"reset_on_completion": False}
    )
    engine, source, _ = make_engine(definition)
    engine.ingestion.grant_progress("p1", "default", "placeholder_1", 1)
    engine.ingestion.grant_progress("p1", "default", "placeholder_25", 1)

    trimmed = GameDefinition(
        game_id="default",
        reset_on_completion=False,
        challenges=(*definition.challenges[:24], Challenge(id="replacement", slot=24)),
    )
    source.put("default", trimmed)
    engine.reload()

    assert engine.prune_orphans() == 2
    assert engine.store.is_completed("p1", "default", "placeholder_1")
    assert not engine.store.is_completed("p1", "default", "placeholder_25")


def test_min_challenges_setting_is_respected() -> None:
    definition = GameDefinition(
        game_id="tiny", challenges=(Challenge(id="only", slot=12),)
    )
    source = InMemoryDefinitionSource({"tiny": definition})

    strict = BingoEngine.create_default(source)
    relaxed = BingoEngine.create_default(
        source, settings=EngineSettings(min_challenges=1)
    )

    assert strict.ensure_board("p1", "tiny") is None
    board = relaxed.ensure_board("p1", "tiny")
    assert board is not None
    assert board[12] == "only"
    assert board.count("") == 24


def test_increment_and_grant_wrappers() -> None:
    definition = build_placeholder_definition("default").model_copy(
        update={"reset_on_completion": False}
    )
    engine, _, _ = make_engine(definition)

    assert engine.ingestion.increment_progress("p1", "default", "placeholder_9")
    assert engine.store.is_completed("p1", "default", "placeholder_9")
    assert engine.grant_progress("p1", "default", "placeholder_10", 1)

    summary = engine.grant_progress_all_games("p1", "placeholder_11", 1)
    assert (summary.attempted, summary.matched, summary.applied) == (1, 1, 1)


def test_reset_all_games_for_player_forgets_everything() -> None:
    first = build_placeholder_definition("first")
    second = build_placeholder_definition("second")
    engine, _, _ = make_engine(first, second)
    engine.grant_progress("p1", "first", "placeholder_1", 1)
    engine.grant_progress("p1", "second", "placeholder_1", 1)
    engine.grant_progress("p2", "first", "placeholder_1", 1)

    engine.reset_all_games_for_player("p1")

    assert engine.store.known_players() == frozenset({"p2"})
    assert engine.store.get_board("p1", "first") is None
