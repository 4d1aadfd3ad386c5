"""CommandHistory - bounded, linear undo/redo over ManipulationCommands.

The log has a cursor in ``[-1, len - 1]``; ``-1`` means nothing to undo.
Recording after an undo discards the undone tail (no redo branches).
When the log outgrows its capacity the oldest entry is dropped.

Replays recompute the subtree rewrite from the current graph with the same
rule the engine uses, so the log stays one small record per move.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from fzctl.domain.moves import (
    ManipulationCommand,
    MoveOutcome,
    NoteStore,
    relocate,
    subtree_changes,
)

if TYPE_CHECKING:
    from fzctl.domain.graph import ZettelGraph
    from fzctl.domain.identifiers import Identifier

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50


class HistoryBoundsCode(StrEnum):
    NOTHING_TO_UNDO = "NOTHING_TO_UNDO"
    NOTHING_TO_REDO = "NOTHING_TO_REDO"
    STALE_COMMAND = "STALE_COMMAND"


@dataclass(frozen=True)
class HistoryBoundsError:
    """Undo/redo could not run. Returned, never raised."""

    code: HistoryBoundsCode
    message: str


class CommandHistory:
    """Linear undo/redo log with a movable cursor.

    Example:
        >>> history = CommandHistory(capacity=50)
        >>> history.record(outcome.command)
        >>> history.undo(graph)
        >>> history.redo(graph)
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            msg = f"History capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._log: list[ManipulationCommand] = []
        self._cursor = -1

    def __len__(self) -> int:
        return len(self._log)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def cursor(self) -> int:
        return self._cursor

    def entries(self) -> Iterator[ManipulationCommand]:
        yield from self._log

    def can_undo(self) -> bool:
        return self._cursor >= 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._log) - 1

    def clear(self) -> None:
        self._log = []
        self._cursor = -1

    def record(self, command: ManipulationCommand) -> None:
        """Append *command* after the cursor, discarding any undone tail."""
        del self._log[self._cursor + 1 :]
        self._log.append(command)
        self._cursor += 1
        if len(self._log) > self._capacity:
            self._log.pop(0)
            self._cursor -= 1

    def undo(
        self, graph: ZettelGraph, *, store: NoteStore | None = None
    ) -> MoveOutcome | HistoryBoundsError:
        """Restore the node at the cursor to its pre-move identifier and parent."""
        if not self.can_undo():
            return HistoryBoundsError(HistoryBoundsCode.NOTHING_TO_UNDO, "Nothing to undo")
        command = self._log[self._cursor]
        outcome = _replay(graph, command, command.old_identifier, command.old_parent_id, store)
        if isinstance(outcome, MoveOutcome):
            self._cursor -= 1
            logger.info("Undid %s", command)
        return outcome

    def redo(
        self, graph: ZettelGraph, *, store: NoteStore | None = None
    ) -> MoveOutcome | HistoryBoundsError:
        """Re-apply the command after the cursor."""
        if not self.can_redo():
            return HistoryBoundsError(HistoryBoundsCode.NOTHING_TO_REDO, "Nothing to redo")
        command = self._log[self._cursor + 1]
        outcome = _replay(graph, command, command.new_identifier, command.new_parent_id, store)
        if isinstance(outcome, MoveOutcome):
            self._cursor += 1
            logger.info("Redid %s", command)
        return outcome


def _replay(
    graph: ZettelGraph,
    command: ManipulationCommand,
    identifier: Identifier,
    parent_id: str | None,
    store: NoteStore | None,
) -> MoveOutcome | HistoryBoundsError:
    missing_parent = parent_id is not None and parent_id not in graph.nodes
    if command.node_id not in graph.nodes or missing_parent:
        logger.warning("Cannot replay %s: node or parent no longer exists", command)
        return HistoryBoundsError(
            HistoryBoundsCode.STALE_COMMAND,
            f"{command} refers to a node that no longer exists",
        )
    changes = subtree_changes(graph, command.node_id, identifier)
    renames, warnings = relocate(graph, command.node_id, parent_id, changes, store=store)
    return MoveOutcome(
        graph=graph,
        command=command,
        changes=changes,
        renames=renames,
        warnings=warnings,
    )
