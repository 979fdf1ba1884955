"""Callbacks the engine uses to reach back into the hosting game."""

from __future__ import annotations

from typing import Protocol


class HostHooks(Protocol):
    """Protocol describing the side effects a win can trigger in the host."""

    def perform_reward(self, player_id: str, action: str) -> None:
        """Run the reward *action* on behalf of *player_id*."""

    def broadcast(self, message: str) -> None:
        """Announce *message* to every connected player."""


class RecordingHostHooks:
    """In-memory :class:`HostHooks` that records every requested side effect."""

    def __init__(self) -> None:
        self.rewards: list[tuple[str, str]] = []
        self.broadcasts: list[str] = []

    def perform_reward(self, player_id: str, action: str) -> None:
        self.rewards.append((player_id, action))

    def broadcast(self, message: str) -> None:
        self.broadcasts.append(message)


__all__ = ["HostHooks", "RecordingHostHooks"]
