"""HierarchyService - forest queries, moves, and undo/redo.

Move pipeline: RESOLVE refs -> VALIDATE (request_move) -> APPLY (apply_move)
-> RECORD (history) -> PERSIST (queued renames) -> RESPOND.
"""

from __future__ import annotations

from typing import Any

from fzctl.domain.graph import ZettelGraph, ZettelNode
from fzctl.domain.history import HistoryBoundsError
from fzctl.domain.identifiers import next_branch, next_sequence
from fzctl.domain.moves import MoveError, MoveOutcome, MovePlan, apply_move, request_move
from fzctl.services.base import BaseService
from fzctl.services.result import ServiceResult


def _tree_entry(graph: ZettelGraph, node: ZettelNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "identifier": node.number,
        "title": node.title,
        "type": str(node.type),
        "children": [_tree_entry(graph, child) for child in graph.children(node.id)],
    }


def _summary(node: ZettelNode) -> dict[str, Any]:
    return {"id": node.id, "identifier": node.number, "title": node.title, "type": str(node.type)}


def _outcome_data(outcome: MoveOutcome) -> dict[str, Any]:
    node = outcome.graph.nodes[outcome.command.node_id]
    return {
        "id": node.id,
        "identifier": node.number,
        "parent_id": node.parent_id,
        "changes": [c.to_dict() for c in outcome.changes],
        "renames": [{"old": r.old_name, "new": r.new_name} for r in outcome.renames],
    }


class HierarchyService(BaseService):
    """Handles hierarchy queries and restructuring."""

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _resolve(self, ref: str, op: str) -> ZettelNode | ServiceResult:
        """Resolve *ref* as a node id, then as an identifier string."""
        graph = self._vault.graph
        node = graph.get(ref)
        if node is not None:
            return node
        matches = graph.find(ref.strip())
        if not matches:
            return ServiceResult.fail(op, "NOT_FOUND", f"No note found for: {ref}")
        if len(matches) > 1:
            return ServiceResult.fail(
                op,
                "AMBIGUOUS",
                f"Identifier {ref} is carried by {len(matches)} notes; use a node id",
                candidates=[n.id for n in matches],
            )
        return matches[0]

    def _collision_warnings(self) -> list[str]:
        return [str(c) for c in self._vault.graph.collisions]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def tree(self) -> ServiceResult:
        """The whole forest, roots and children in sibling order."""
        graph = self._vault.graph
        roots = [_tree_entry(graph, node) for node in graph.sorted_roots()]
        return ServiceResult(
            ok=True,
            op="tree",
            data={"count": len(graph), "roots": roots},
            warnings=self._collision_warnings(),
        )

    def show(self, ref: str) -> ServiceResult:
        """One node with its parent, children and siblings."""
        resolved = self._resolve(ref, "show")
        if isinstance(resolved, ServiceResult):
            return resolved
        graph = self._vault.graph
        parent = graph.parent(resolved.id)
        data = resolved.to_dict()
        data.update(
            {
                "is_root": graph.is_root(resolved.id),
                "parent": _summary(parent) if parent else None,
                "children": [_summary(n) for n in graph.children(resolved.id)],
                "siblings": [_summary(n) for n in graph.siblings_of(resolved.id)],
            }
        )
        return ServiceResult(ok=True, op="show", data=data)

    def stats(self) -> ServiceResult:
        return ServiceResult(
            ok=True,
            op="stats",
            data=self._vault.graph.stats(),
            warnings=self._collision_warnings(),
        )

    def check(self) -> ServiceResult:
        """Verify the forest invariant and list identifier collisions."""
        graph = self._vault.graph
        issues = graph.verify()
        collisions = [
            {"identifier": c.identifier, "ids": list(c.node_ids)} for c in graph.collisions
        ]
        return ServiceResult(
            ok=True,
            op="check",
            data={
                "valid": not issues,
                "count": len(issues),
                "issues": issues,
                "collisions": collisions,
            },
        )

    def next_id(self, ref: str, *, branch: bool = False) -> ServiceResult:
        """Next unused sequential (or branch) identifier after *ref*."""
        op = "next_id"
        resolved = self._resolve(ref, op)
        if isinstance(resolved, ServiceResult):
            return resolved
        taken = [n.identifier for n in self._vault.graph.nodes.values()]
        allocate = next_branch if branch else next_sequence
        identifier = allocate(resolved.identifier, taken)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "from": resolved.number,
                "identifier": str(identifier),
                "type": str(identifier.type),
            },
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def move(self, source: str, target: str, *, dry_run: bool = False) -> ServiceResult:
        """Make *source* the first child of *target*, renumbering its subtree."""
        op = "move"
        dragged = self._resolve(source, op)
        if isinstance(dragged, ServiceResult):
            return dragged
        parent = self._resolve(target, op)
        if isinstance(parent, ServiceResult):
            return parent

        graph = self._vault.graph
        plan = request_move(dragged.id, parent.id, graph)
        if isinstance(plan, MoveError):
            return ServiceResult.fail(op, str(plan.code), plan.message, **plan.detail)

        if dry_run:
            return ServiceResult(ok=True, op=op, data=self._plan_data(plan, graph))

        outcome = apply_move(plan, graph, store=self._vault.store)
        self._vault.history.record(outcome.command)
        warnings = [*outcome.warnings, *self._persistence_warnings()]
        return ServiceResult(
            ok=True,
            op=op,
            data={**_outcome_data(outcome), "dry_run": False},
            warnings=warnings,
        )

    @staticmethod
    def _plan_data(plan: MovePlan, graph: ZettelGraph) -> dict[str, Any]:
        return {
            "id": plan.node_id,
            "identifier": str(plan.new_identifier),
            "parent_id": plan.target_id,
            "changes": [c.to_dict() for c in plan.changes],
            "conflicts": [graph.nodes[nid].number for nid in plan.conflicts],
            "dry_run": True,
        }

    def undo(self) -> ServiceResult:
        outcome = self._vault.history.undo(self._vault.graph, store=self._vault.store)
        return self._replay_result("undo", outcome)

    def redo(self) -> ServiceResult:
        outcome = self._vault.history.redo(self._vault.graph, store=self._vault.store)
        return self._replay_result("redo", outcome)

    def _replay_result(self, op: str, outcome: MoveOutcome | HistoryBoundsError) -> ServiceResult:
        if isinstance(outcome, HistoryBoundsError):
            return ServiceResult.fail(op, str(outcome.code), outcome.message)
        warnings = [*outcome.warnings, *self._persistence_warnings()]
        return ServiceResult(ok=True, op=op, data=_outcome_data(outcome), warnings=warnings)

    def history(self) -> ServiceResult:
        """The command log with the undo cursor position."""
        history = self._vault.history
        items = [
            {**command.to_dict(), "position": i, "applied": i <= history.cursor}
            for i, command in enumerate(history.entries())
        ]
        return ServiceResult(
            ok=True,
            op="history",
            data={
                "count": len(items),
                "cursor": history.cursor,
                "capacity": history.capacity,
                "can_undo": history.can_undo(),
                "can_redo": history.can_redo(),
                "items": items,
            },
        )
