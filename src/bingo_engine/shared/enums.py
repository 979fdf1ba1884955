"""Shared enumerations used across the engine."""

from enum import StrEnum


class ChallengeType(StrEnum):
    """Challenge categories understood by the ingestion layer."""

    CATCH = "catch"
    COLLECT = "collect"
    ENTER_AREA = "enterarea"
    CUSTOM = "custom"
    PLACEHOLDER = "placeholder"


class LineType(StrEnum):
    """Board line families that can complete a game."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    DIAGONAL = "diagonal"


class WinOutcome(StrEnum):
    """Result of evaluating a board for completed lines."""

    NONE = "none"
    LINE_COMPLETED = "line_completed"
