"""Game definition registry with atomic reload.

The registry owns the set of loaded :class:`GameDefinition` objects. Readers
always observe one complete generation of definitions: reloads and runtime
toggles build a fresh immutable snapshot and swap it in with a single
reference assignment.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol

from pydantic import ValidationError

from bingo_engine.game_logic.definitions import GameDefinition
from bingo_engine.shared.identifiers import DEFAULT_GAME_ID, normalize_game_id

logger = logging.getLogger(__name__)

DefinitionDocument = Mapping[str, Any] | GameDefinition


class BingoEngineError(Exception):
    """Base exception for all bingo engine errors."""


class DefinitionSourceError(BingoEngineError):
    """Raised when the host storage cannot enumerate game definitions."""


class DefinitionSource(Protocol):
    """Protocol describing where game definitions are read from."""

    def list_definition_ids(self) -> Iterable[str]:
        """Return the identifiers of every stored definition."""

    def load_definition(self, definition_id: str) -> DefinitionDocument | None:
        """Return the raw definition for *definition_id* or ``None``."""


class InMemoryDefinitionSource:
    """Trivial in-memory implementation of :class:`DefinitionSource`."""

    def __init__(
        self, documents: Mapping[str, DefinitionDocument] | None = None
    ) -> None:
        self._documents: dict[str, DefinitionDocument] = dict(documents or {})

    def put(self, definition_id: str, document: DefinitionDocument) -> None:
        """Store *document* under *definition_id*, replacing any previous value."""
        self._documents[definition_id] = document

    def remove(self, definition_id: str) -> None:
        """Forget the document stored under *definition_id*."""
        self._documents.pop(definition_id, None)

    def list_definition_ids(self) -> Iterable[str]:
        """Return the stored identifiers."""
        return tuple(self._documents)

    def load_definition(self, definition_id: str) -> DefinitionDocument | None:
        """Return the stored document for *definition_id* if available."""
        return self._documents.get(definition_id)


@dataclass(frozen=True, slots=True)
class DefinitionSnapshot:
    """One complete generation of loaded definitions.

    Callers that read several definitions during one operation should hold a
    single snapshot so a concurrent reload cannot mix generations.
    """

    ids: frozenset[str]
    definitions: Mapping[str, GameDefinition] = field(
        default_factory=lambda: MappingProxyType({})
    )
    loaded: Mapping[str, GameDefinition] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def get(self, game_id: str | None) -> GameDefinition | None:
        """Return the definition for *game_id* or ``None`` when unknown."""
        if game_id is None:
            return None
        return self.definitions.get(normalize_game_id(game_id))


class DefinitionRegistry:
    """Hold the active game definitions and replace them wholesale on reload."""

    def __init__(
        self,
        source: DefinitionSource,
        *,
        preserve_runtime_toggles: bool = True,
    ) -> None:
        self._source = source
        self._preserve_runtime_toggles = preserve_runtime_toggles
        self._snapshot = DefinitionSnapshot(ids=frozenset({DEFAULT_GAME_ID}))
        self._write_lock = threading.Lock()

    def ids(self) -> frozenset[str]:
        """Return the identifiers of the current generation."""
        return self._snapshot.ids

    def snapshot(self) -> DefinitionSnapshot:
        """Return the current generation of definitions."""
        return self._snapshot

    def get(self, game_id: str | None) -> GameDefinition | None:
        """Return the definition for *game_id* or ``None`` when unknown."""
        return self._snapshot.get(game_id)

    def definitions(self) -> tuple[GameDefinition, ...]:
        """Return every loaded definition ordered by identifier."""
        current = self._snapshot.definitions
        return tuple(current[game_id] for game_id in sorted(current))

    def reload(self) -> frozenset[str]:
        """Re-read every definition from the source and swap them in atomically.

        Definitions that cannot be read or validated are skipped. A failure to
        enumerate the source raises :class:`DefinitionSourceError` and keeps the
        previous generation in place.
        """
        with self._write_lock:
            try:
                definition_ids = tuple(self._source.list_definition_ids())
            except Exception as exc:
                logger.exception("Failed to list bingo definitions")
                msg = "Unable to enumerate game definitions."
                raise DefinitionSourceError(msg) from exc

            previous = self._snapshot
            loaded: dict[str, GameDefinition] = {}
            for raw_id in definition_ids:
                definition = self._load_one(raw_id)
                if definition is not None:
                    loaded[definition.game_id] = definition

            active: dict[str, GameDefinition] = {}
            for game_id, definition in loaded.items():
                active[game_id] = self._carry_runtime_state(
                    previous, game_id, definition
                )

            ids = frozenset(active) or frozenset({DEFAULT_GAME_ID})
            self._snapshot = DefinitionSnapshot(
                ids=ids,
                definitions=MappingProxyType(active),
                loaded=MappingProxyType(loaded),
            )
        logger.info("Loaded bingo games: %s", sorted(ids))
        return ids

    def set_active(self, game_id: str | None, active: bool) -> bool:
        """Toggle the runtime active flag of *game_id*; ``False`` if unknown."""
        if game_id is None:
            return False
        key = normalize_game_id(game_id)
        with self._write_lock:
            current = self._snapshot
            definition = current.definitions.get(key)
            if definition is None:
                return False
            if definition.active != active:
                updated = dict(current.definitions)
                updated[key] = definition.model_copy(update={"active": active})
                self._snapshot = DefinitionSnapshot(
                    ids=current.ids,
                    definitions=MappingProxyType(updated),
                    loaded=current.loaded,
                )
        logger.info("Bingo game '%s' %s", key, "enabled" if active else "disabled")
        return True

    def _load_one(self, raw_id: str) -> GameDefinition | None:
        game_id = normalize_game_id(raw_id)
        try:
            document = self._source.load_definition(raw_id)
            if document is None:
                return None
            definition = GameDefinition.model_validate(document)
        except ValidationError as exc:
            logger.warning("Skipping invalid bingo definition '%s': %s", raw_id, exc)
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Skipping unreadable bingo definition '%s': %s", raw_id, exc)
            return None

        for challenge in definition.challenges:
            if challenge.is_ambiguous_catch:
                logger.warning(
                    "Challenge '%s' in '%s' lists both species and types; "
                    "it can never match",
                    challenge.id,
                    game_id,
                )
        return definition.model_copy(update={"game_id": game_id})

    def _carry_runtime_state(
        self,
        previous: DefinitionSnapshot,
        game_id: str,
        definition: GameDefinition,
    ) -> GameDefinition:
        if not self._preserve_runtime_toggles:
            return definition
        if previous.loaded.get(game_id) != definition:
            return definition
        current = previous.definitions.get(game_id)
        if current is None or current.active == definition.active:
            return definition
        return definition.model_copy(update={"active": current.active})


__all__ = [
    "BingoEngineError",
    "DefinitionDocument",
    "DefinitionRegistry",
    "DefinitionSnapshot",
    "DefinitionSource",
    "DefinitionSourceError",
    "InMemoryDefinitionSource",
]
