"""Deterministic random helpers used across the game logic."""

from __future__ import annotations

import zlib
from collections.abc import Iterable, Sequence  # noqa: TC003
from random import Random
from typing import TypeVar

_T = TypeVar("_T")


def effective_weight(weight: int | None) -> int:
    """Return the sampling weight for *weight*; unset or non-positive counts as 1."""
    if weight is None:
        return 1
    return max(1, weight)


class DeterministicRandomService:
    """Thin wrapper around :class:`random.Random` providing deterministic utilities."""

    def __init__(self, seed: int | None = None) -> None:
        self._seed = seed
        self._random = Random(seed)  # noqa: S311

    def stream_for(self, player_id: str) -> DeterministicRandomService:
        """Return an independent random stream owned by *player_id*.

        With a base seed the stream is reproducible across processes; without
        one it is drawn from the service generator.
        """
        if self._seed is None:
            return DeterministicRandomService(self._random.getrandbits(64))
        derived = zlib.crc32(f"{self._seed}:{player_id}".encode())
        return DeterministicRandomService(derived)

    def shuffle(self, items: Iterable[_T]) -> tuple[_T, ...]:
        """Return a shuffled tuple of *items* using the service RNG."""
        mutable = list(items)
        self._random.shuffle(mutable)
        return tuple(mutable)

    def weighted_index(self, weights: Sequence[int | None]) -> int | None:
        """Return the index picked by a cumulative weighted draw.

        A uniform integer is drawn in ``[0, total)`` and the weights are walked
        in order until the running sum exceeds it, so ties resolve to the
        earliest entry.
        """
        if not weights:
            return None
        normalized = [effective_weight(weight) for weight in weights]
        draw = self._random.randrange(sum(normalized))
        accumulated = 0
        for index, weight in enumerate(normalized):
            accumulated += weight
            if draw < accumulated:
                return index
        return len(normalized) - 1

    def weighted_choice(self, entries: Sequence[tuple[_T, int | None]]) -> _T | None:
        """Return one item of ``(item, weight)`` *entries*, or ``None`` when empty."""
        index = self.weighted_index([weight for _, weight in entries])
        if index is None:
            return None
        return entries[index][0]

    def weighted_sample(
        self, entries: Sequence[tuple[_T, int | None]], count: int
    ) -> tuple[_T, ...]:
        """Draw up to *count* distinct items without replacement."""
        pool = list(entries)
        picked: list[_T] = []
        while pool and len(picked) < count:
            index = self.weighted_index([weight for _, weight in pool])
            if index is None:
                break
            item, _ = pool.pop(index)
            picked.append(item)
        return tuple(picked)


__all__ = ["DeterministicRandomService", "effective_weight"]
