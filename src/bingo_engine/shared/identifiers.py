"""Normalization helpers for game, challenge, species and item identifiers.

Every progress fact is addressed by ``(player_id, game_id, challenge_id)``.
Game identifiers are normalized so that equal games always produce the same
key regardless of the casing or whitespace supplied by callers; the
normalization is idempotent.
"""

from __future__ import annotations

import re

DEFAULT_GAME_ID = "default"
GAME_ID_MAX_LENGTH = 64
KEY_SEPARATOR = "|"

_UNSAFE_GAME_ID_CHARS = re.compile(r"[^a-z0-9._-]")


def normalize_game_id(raw: str | None) -> str:
    """Return the canonical form of a game identifier.

    Blank input maps to :data:`DEFAULT_GAME_ID`; otherwise the value is
    trimmed, lowercased, stripped of unsafe characters and length-capped.
    """
    if raw is None or not raw.strip():
        return DEFAULT_GAME_ID
    cleaned = _UNSAFE_GAME_ID_CHARS.sub("_", raw.strip().lower())
    return cleaned[:GAME_ID_MAX_LENGTH]


def normalize_challenge_id(raw: str | None) -> str:
    """Return the trimmed challenge identifier (case is significant)."""
    if raw is None:
        return ""
    return raw.strip()


def progress_key(game_id: str | None, challenge_id: str | None) -> str:
    """Build the persisted ``game|challenge`` key."""
    return (
        f"{normalize_game_id(game_id)}{KEY_SEPARATOR}"
        f"{normalize_challenge_id(challenge_id)}"
    )


def split_progress_key(key: str) -> tuple[str, str]:
    """Split a persisted key back into ``(game_id, challenge_id)``."""
    game_id, _, challenge_id = key.partition(KEY_SEPARATOR)
    return game_id, challenge_id


def normalize_namespaced_id(raw: str | None, default_namespace: str) -> str | None:
    """Return ``namespace:name`` in lowercase, or ``None`` for blank input."""
    if raw is None:
        return None
    cleaned = raw.strip().lower()
    if not cleaned:
        return None
    if ":" in cleaned:
        return cleaned
    return f"{default_namespace}:{cleaned}"


def normalize_type_name(raw: str | None) -> str | None:
    """Return a case-insensitive type name, or ``None`` for blank input."""
    if raw is None:
        return None
    cleaned = raw.strip().lower()
    return cleaned or None


__all__ = [
    "DEFAULT_GAME_ID",
    "GAME_ID_MAX_LENGTH",
    "KEY_SEPARATOR",
    "normalize_challenge_id",
    "normalize_game_id",
    "normalize_namespaced_id",
    "normalize_type_name",
    "progress_key",
    "split_progress_key",
]
