"""Hierarchy mutation engine - validate and execute reparent moves.

Two steps, mirroring a drag and a drop:

- :func:`request_move` is pure validation. It never touches the graph and
  returns either a :class:`MovePlan` or a :class:`MoveError`.
- :func:`apply_move` mutates the graph in place, rewrites the identifier of
  every node in the moved subtree, issues best-effort rename requests, and
  emits exactly one :class:`ManipulationCommand`.

Policy: a moved node always takes the first child slot (``parent.1``).
Existing children are not shifted, and a moved branch node becomes a
sequence node.

INVARIANT: a failed request leaves the graph untouched.
INVARIANT: only the dragged node's own before/after state is recorded; the
subtree rewrite is recomputed from the graph whenever a command is replayed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Literal, Protocol

from fzctl.domain.identifiers import (
    IDENTIFIER_PATTERN,
    Identifier,
    first_child,
    format_identifier,
    in_subtree,
    is_descendant_or_equal,
    rebase,
    sibling_key,
)

if TYPE_CHECKING:
    from fzctl.domain.graph import ZettelGraph, ZettelNode

logger = logging.getLogger(__name__)


class MoveErrorCode(StrEnum):
    SELF_MOVE = "SELF_MOVE"
    NOT_FOUND = "NOT_FOUND"
    CYCLIC_MOVE = "CYCLIC_MOVE"
    INVALID_TARGET = "INVALID_TARGET"


@dataclass(frozen=True)
class MoveError:
    """Why a move was rejected. Returned, never raised."""

    code: MoveErrorCode
    message: str
    detail: dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class IdentifierChange:
    """Change event: one node's identifier was rewritten."""

    node_id: str
    old: Identifier
    new: Identifier

    def to_dict(self) -> dict[str, str]:
        return {"id": self.node_id, "old": str(self.old), "new": str(self.new)}


@dataclass(frozen=True)
class MovePlan:
    """A validated move, ready for :func:`apply_move`.

    Attributes:
        changes: The dragged node first, then its subtree in sibling order.
        conflicts: Ids of nodes outside the subtree that already carry one
            of the new identifiers.
    """

    node_id: str
    target_id: str
    old_identifier: Identifier
    target_identifier: Identifier
    new_identifier: Identifier
    old_parent_id: str | None
    changes: tuple[IdentifierChange, ...]
    conflicts: tuple[str, ...] = ()


@dataclass(frozen=True)
class ManipulationCommand:
    """Immutable history record of one move."""

    node_id: str
    old_identifier: Identifier
    old_parent_id: str | None
    new_identifier: Identifier
    new_parent_id: str | None
    timestamp: datetime = field(default_factory=datetime.now)
    type: Literal["move"] = "move"

    def __str__(self) -> str:
        return f"move({self.node_id}: {self.old_identifier} -> {self.new_identifier})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "node_id": self.node_id,
            "old_identifier": str(self.old_identifier),
            "old_parent_id": self.old_parent_id,
            "new_identifier": str(self.new_identifier),
            "new_parent_id": self.new_parent_id,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class RenameRequest:
    """Ask the persistence collaborator to rename one file."""

    node_id: str
    file: Any
    old_name: str
    new_name: str


class NoteStore(Protocol):
    """Persistence collaborator. Requests are fire-and-forget."""

    def submit_rename(self, request: RenameRequest) -> None: ...


@dataclass(frozen=True)
class MoveOutcome:
    """Updated graph plus the change events produced by a move or replay."""

    graph: ZettelGraph
    command: ManipulationCommand
    changes: tuple[IdentifierChange, ...]
    renames: tuple[RenameRequest, ...] = ()
    warnings: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _below_twin(graph: ZettelGraph, node: ZettelNode, node_id: str, old: Identifier) -> bool:
    """True when *node* hangs, by parent link, under another holder of *old*."""
    seen: set[str] = set()
    parent_id = node.parent_id
    while parent_id is not None and parent_id not in seen:
        if parent_id == node_id:
            return False
        seen.add(parent_id)
        parent = graph.nodes.get(parent_id)
        if parent is None:
            return False
        if parent.identifier == old:
            return True
        parent_id = parent.parent_id
    return False


def subtree_changes(
    graph: ZettelGraph, node_id: str, new_identifier: Identifier
) -> tuple[IdentifierChange, ...]:
    """Identifier rewrites needed to move *node_id*'s subtree to *new_identifier*.

    Other files carrying exactly the dragged identifier are not part of it,
    and neither is anything linked below one of them.
    """
    node = graph.nodes[node_id]
    old = node.identifier
    inside = [
        other
        for other in graph.nodes.values()
        if other.id != node_id
        and other.identifier != old
        and in_subtree(old, other.identifier)
        and not _below_twin(graph, other, node_id, old)
    ]
    inside.sort(key=lambda n: (sibling_key(n.identifier), n.id))
    return (
        IdentifierChange(node_id, old, new_identifier),
        *(
            IdentifierChange(n.id, n.identifier, rebase(n.identifier, old, new_identifier))
            for n in inside
        ),
    )


def request_move(
    dragged_id: str, candidate_parent_id: str, graph: ZettelGraph
) -> MovePlan | MoveError:
    """Validate moving *dragged_id* to become the first child of *candidate_parent_id*."""
    if dragged_id == candidate_parent_id:
        return MoveError(
            MoveErrorCode.SELF_MOVE,
            "Cannot move a node under itself",
            {"id": dragged_id},
        )

    missing = [nid for nid in (dragged_id, candidate_parent_id) if nid not in graph.nodes]
    if missing:
        return MoveError(
            MoveErrorCode.NOT_FOUND,
            f"No node found with ID: {', '.join(missing)}",
            {"missing": missing},
        )

    dragged = graph.nodes[dragged_id]
    target = graph.nodes[candidate_parent_id]
    d, t = dragged.identifier, target.identifier

    if is_descendant_or_equal(d, t) or is_descendant_or_equal(t, d) or in_subtree(d, t):
        return MoveError(
            MoveErrorCode.CYCLIC_MOVE,
            f"Cannot move {d} under {t}: they lie on the same ancestor line",
            {"id": dragged_id, "target_id": candidate_parent_id},
        )

    if t.is_branch:
        return MoveError(
            MoveErrorCode.INVALID_TARGET,
            f"Cannot move {d} under branch {t}: branches carry no children",
            {"id": dragged_id, "target_id": candidate_parent_id},
        )

    new_identifier = first_child(t)
    changes = subtree_changes(graph, dragged_id, new_identifier)

    moved = {c.node_id for c in changes}
    new_names = {format_identifier(c.new) for c in changes}
    conflicts = tuple(
        n.id for n in graph.nodes.values() if n.id not in moved and n.number in new_names
    )

    return MovePlan(
        node_id=dragged_id,
        target_id=candidate_parent_id,
        target_identifier=t,
        old_identifier=d,
        new_identifier=new_identifier,
        old_parent_id=dragged.parent_id,
        changes=changes,
        conflicts=conflicts,
    )


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def renamed_basename(basename: str, old: Identifier, new: Identifier) -> str | None:
    """Swap the first occurrence of *old* in *basename* for *new*.

    Only whole identifier tokens match, so ``21`` never rewrites ``210``.
    Returns None when *basename* does not contain *old*.
    """
    old_text = format_identifier(old)
    for match in IDENTIFIER_PATTERN.finditer(basename):
        if match.group(0) == old_text:
            return basename[: match.start()] + format_identifier(new) + basename[match.end() :]
    return None


def _issue_rename(
    graph: ZettelGraph,
    node: ZettelNode,
    change: IdentifierChange,
    store: NoteStore | None,
    warnings: list[str],
) -> RenameRequest | None:
    new_name = renamed_basename(node.basename, change.old, change.new)
    if new_name is None or new_name == node.basename:
        logger.debug("No filename rewrite for %s (%s)", node.id, node.basename)
        return None

    request = RenameRequest(node.id, node.file, node.basename, new_name)
    # Every node parsed from the same file shares its name.
    for other in graph.nodes.values():
        if other is node or (node.file is not None and other.file == node.file):
            other.basename = new_name

    if store is not None:
        try:
            store.submit_rename(request)
        except Exception as exc:
            logger.warning("Rename request failed for %s: %s", node.id, exc)
            warnings.append(f"Rename failed: {request.old_name} -> {request.new_name} ({exc})")
    return request


def relocate(
    graph: ZettelGraph,
    node_id: str,
    parent_id: str | None,
    changes: tuple[IdentifierChange, ...],
    *,
    store: NoteStore | None = None,
) -> tuple[tuple[RenameRequest, ...], tuple[str, ...]]:
    """Detach *node_id*, apply *changes*, and re-link it under *parent_id*.

    A None *parent_id* makes the node a root. Shared by apply, undo and redo.
    Returns the rename requests issued and any persistence warnings.
    """
    node = graph.nodes[node_id]

    if node.parent_id is None:
        if node_id in graph.roots:
            graph.roots.remove(node_id)
    else:
        old_parent = graph.nodes.get(node.parent_id)
        if old_parent is not None and node_id in old_parent.children:
            old_parent.children.remove(node_id)

    warnings: list[str] = []
    renames: list[RenameRequest] = []
    for change in changes:
        target = graph.nodes[change.node_id]
        target.identifier = change.new
        request = _issue_rename(graph, target, change, store, warnings)
        if request is not None:
            renames.append(request)

    node.parent_id = parent_id
    if parent_id is None:
        graph.roots.append(node_id)
    else:
        graph.nodes[parent_id].children.append(node_id)

    return tuple(renames), tuple(warnings)


def apply_move(
    plan: MovePlan, graph: ZettelGraph, *, store: NoteStore | None = None
) -> MoveOutcome:
    """Execute a validated *plan* against *graph* in place.

    Raises ``ValueError`` if the graph changed since the plan was made.
    Persistence failures do not roll back the in-memory move; they come
    back as warnings.
    """
    node = graph.nodes.get(plan.node_id)
    target = graph.nodes.get(plan.target_id)
    if (
        node is None
        or target is None
        or node.identifier != plan.old_identifier
        or target.identifier != plan.target_identifier
    ):
        msg = f"Stale move plan for {plan.node_id}; request the move again"
        raise ValueError(msg)

    renames, store_warnings = relocate(
        graph, plan.node_id, plan.target_id, plan.changes, store=store
    )

    warnings = [
        f"Identifier already in use: {graph.nodes[nid].number} ({nid})" for nid in plan.conflicts
    ]
    warnings.extend(store_warnings)

    command = ManipulationCommand(
        node_id=plan.node_id,
        old_identifier=plan.old_identifier,
        old_parent_id=plan.old_parent_id,
        new_identifier=plan.new_identifier,
        new_parent_id=plan.target_id,
    )
    logger.info(
        "Moved %s: %s -> %s (%d identifiers rewritten)",
        plan.node_id,
        plan.old_identifier,
        plan.new_identifier,
        len(plan.changes),
    )
    return MoveOutcome(
        graph=graph,
        command=command,
        changes=plan.changes,
        renames=renames,
        warnings=tuple(warnings),
    )
