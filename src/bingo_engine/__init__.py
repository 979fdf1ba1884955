"""Bingo progress engine package wiring and entrypoints."""

from bingo_engine.game_logic import BingoEngine
from bingo_engine.settings import EngineSettings, get_settings

__all__ = ["BingoEngine", "EngineSettings", "get_settings"]
