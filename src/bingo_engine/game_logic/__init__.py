"""Core rules and mechanics that drive bingo progress tracking."""

from bingo_engine.game_logic.board import BoardGenerator, BoardSlotView, generate_board
from bingo_engine.game_logic.definitions import (
    BOARD_SIZE,
    Challenge,
    ChallengeProperties,
    GameDefinition,
    WeightedAction,
    build_placeholder_definition,
)
from bingo_engine.game_logic.engine import BingoEngine
from bingo_engine.game_logic.host import HostHooks, RecordingHostHooks
from bingo_engine.game_logic.ingestion import (
    BlockPosition,
    CatchEvent,
    EnvironmentPredicate,
    EnvironmentSnapshot,
    IngestionFacade,
    InventorySnapshot,
)
from bingo_engine.game_logic.persistence import (
    InMemorySnapshotStore,
    ProgressSnapshot,
    SnapshotStore,
)
from bingo_engine.game_logic.progress import Board, ProgressStore
from bingo_engine.game_logic.registry import (
    BingoEngineError,
    DefinitionRegistry,
    DefinitionSnapshot,
    DefinitionSource,
    DefinitionSourceError,
    InMemoryDefinitionSource,
)
from bingo_engine.game_logic.win import (
    WinEvaluator,
    completion_grid,
    has_line,
    parse_line_types,
)

__all__ = [
    "BOARD_SIZE",
    "BingoEngine",
    "BingoEngineError",
    "BlockPosition",
    "Board",
    "BoardGenerator",
    "BoardSlotView",
    "CatchEvent",
    "Challenge",
    "ChallengeProperties",
    "DefinitionRegistry",
    "DefinitionSnapshot",
    "DefinitionSource",
    "DefinitionSourceError",
    "EnvironmentPredicate",
    "EnvironmentSnapshot",
    "GameDefinition",
    "HostHooks",
    "InMemoryDefinitionSource",
    "InMemorySnapshotStore",
    "IngestionFacade",
    "InventorySnapshot",
    "ProgressSnapshot",
    "ProgressStore",
    "RecordingHostHooks",
    "SnapshotStore",
    "WeightedAction",
    "WinEvaluator",
    "build_placeholder_definition",
    "completion_grid",
    "generate_board",
    "has_line",
    "parse_line_types",
]
