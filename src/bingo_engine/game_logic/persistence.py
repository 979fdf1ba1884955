"""Persistence abstractions for the progress ledger.

The engine never writes to storage itself. It can export its ledger as an
immutable :class:`ProgressSnapshot` keyed by player id and ``game|challenge``
strings; hosts store that snapshot through any :class:`SnapshotStore` adapter
and hand it back on start-up.
"""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class ProgressSnapshot(BaseModel):
    """Immutable, serializable copy of every player's bingo state."""

    model_config = ConfigDict(frozen=True)

    progress: dict[str, dict[str, int]] = Field(default_factory=dict)
    completed: dict[str, list[str]] = Field(default_factory=dict)
    boards: dict[str, dict[str, list[str]]] = Field(default_factory=dict)
    claimed_rewards: dict[str, list[str]] = Field(default_factory=dict)


class SnapshotStore(Protocol):
    """Protocol describing how ledger snapshots are persisted."""

    def save_snapshot(self, snapshot: ProgressSnapshot) -> None:
        """Persist *snapshot*, replacing any previous value."""

    def load_snapshot(self) -> ProgressSnapshot | None:
        """Return the latest stored snapshot or ``None``."""


class InMemorySnapshotStore:
    """Trivial in-memory implementation of :class:`SnapshotStore`."""

    def __init__(self) -> None:
        self._snapshot: ProgressSnapshot | None = None
        self.save_count = 0

    def save_snapshot(self, snapshot: ProgressSnapshot) -> None:
        """Keep *snapshot* as the latest stored value."""
        self._snapshot = snapshot
        self.save_count += 1

    def load_snapshot(self) -> ProgressSnapshot | None:
        """Return the stored snapshot if available."""
        return self._snapshot


__all__ = ["InMemorySnapshotStore", "ProgressSnapshot", "SnapshotStore"]
