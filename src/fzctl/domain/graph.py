"""ZettelNode and ZettelGraph - the forest arena.

The graph is an id -> node mapping plus an ordered roots list. Each node
carries a single authoritative ``parent_id``; ``children`` is a cached index
of it. INVARIANT: for every node with ``parent_id = p``, ``p`` exists and
``nodes[p].children`` contains the node, and vice versa. :meth:`verify`
checks this instead of assuming it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from fzctl.domain.identifiers import Identifier, format_identifier, sibling_key
from fzctl.domain.types import ZettelType


@dataclass
class ZettelNode:
    """One (file, identifier) pair in the forest.

    Attributes:
        id: Arena key, ``{identifier}-{basename}`` at build time.
        title: Filename with the leading identifier and separator stripped.
        identifier: Current identifier (rewritten by moves).
        basename: Current filename stem; tracks renames issued by moves.
        file: Opaque handle from the file lister. Never opened by the core.
    """

    id: str
    title: str
    identifier: Identifier
    basename: str
    file: Any = None
    parent_id: str | None = None
    children: list[str] = field(default_factory=list)

    @property
    def type(self) -> ZettelType:
        return self.identifier.type

    @property
    def level(self) -> int:
        return self.identifier.level

    @property
    def number(self) -> str:
        """The identifier as written in the filename."""
        return format_identifier(self.identifier)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "identifier": self.number,
            "title": self.title,
            "type": str(self.type),
            "level": self.level,
            "parent_id": self.parent_id,
            "children": list(self.children),
            "basename": self.basename,
        }


@dataclass(frozen=True)
class ParseCollision:
    """Two or more files yielded the same identifier string. Non-fatal."""

    identifier: str
    node_ids: tuple[str, ...]

    def __str__(self) -> str:
        return f"Identifier {self.identifier} appears in {len(self.node_ids)} files"


@dataclass
class ZettelGraph:
    """Forest of ZettelNodes keyed by node id."""

    nodes: dict[str, ZettelNode] = field(default_factory=dict)
    roots: list[str] = field(default_factory=list)
    collisions: list[ParseCollision] = field(default_factory=list)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def get(self, node_id: str) -> ZettelNode | None:
        return self.nodes.get(node_id)

    # ------------------------------------------------------------------
    # Read-only queries
    # ------------------------------------------------------------------

    def _sorted(self, node_ids: list[str]) -> list[ZettelNode]:
        return sorted(
            (self.nodes[nid] for nid in node_ids if nid in self.nodes),
            key=lambda n: (sibling_key(n.identifier), n.id),
        )

    def children(self, node_id: str) -> list[ZettelNode]:
        """Children of *node_id* in sibling order. Empty for unknown ids."""
        node = self.nodes.get(node_id)
        if node is None:
            return []
        return self._sorted(node.children)

    def parent(self, node_id: str) -> ZettelNode | None:
        node = self.nodes.get(node_id)
        if node is None or node.parent_id is None:
            return None
        return self.nodes.get(node.parent_id)

    def is_root(self, node_id: str) -> bool:
        node = self.nodes.get(node_id)
        return node is not None and node.parent_id is None

    def siblings_of(self, node_id: str) -> list[ZettelNode]:
        """Other nodes sharing *node_id*'s parent (roots for a root), in sibling order."""
        node = self.nodes.get(node_id)
        if node is None:
            return []
        if node.parent_id is None:
            pool = self.roots
        else:
            pool = self.nodes[node.parent_id].children
        return [n for n in self._sorted(pool) if n.id != node_id]

    def sorted_roots(self) -> list[ZettelNode]:
        return self._sorted(self.roots)

    def find(self, identifier: str) -> list[ZettelNode]:
        """Every node currently carrying *identifier* (several on collision)."""
        return [n for n in self.nodes.values() if n.number == identifier]

    def snapshot(self) -> dict[str, tuple[str, str | None]]:
        """``{node_id: (identifier, parent_id)}`` for comparison in undo/redo."""
        return {nid: (n.number, n.parent_id) for nid, n in self.nodes.items()}

    def depth(self, node_id: str) -> int:
        """Distance from the forest root (roots have depth 0)."""
        d = 0
        node = self.nodes[node_id]
        while node.parent_id is not None and d < len(self.nodes):
            node = self.nodes[node.parent_id]
            d += 1
        return d

    def stats(self) -> dict[str, int]:
        branches = sum(1 for n in self.nodes.values() if n.type is ZettelType.BRANCH)
        return {
            "total": len(self.nodes),
            "sequence": len(self.nodes) - branches,
            "branch": branches,
            "roots": len(self.roots),
            "max_depth": max((self.depth(nid) for nid in self.nodes), default=0),
            "collisions": len(self.collisions),
        }

    # ------------------------------------------------------------------
    # Structural checks
    # ------------------------------------------------------------------

    def to_networkx(self) -> nx.DiGraph:
        """Parent -> child DiGraph over all nodes."""
        g: nx.DiGraph = nx.DiGraph()
        for node in self.nodes.values():
            g.add_node(node.id, identifier=node.number, type=str(node.type))
        for node in self.nodes.values():
            if node.parent_id is not None and node.parent_id in self.nodes:
                g.add_edge(node.parent_id, node.id)
        return g

    def verify(self) -> list[str]:
        """Return link problems; an empty list means the forest invariant holds."""
        problems: list[str] = []
        for node in self.nodes.values():
            if node.parent_id is not None:
                parent = self.nodes.get(node.parent_id)
                if parent is None:
                    problems.append(f"{node.id}: parent {node.parent_id} does not exist")
                elif node.id not in parent.children:
                    problems.append(f"{node.id}: missing from children of {parent.id}")
            for child_id in node.children:
                child = self.nodes.get(child_id)
                if child is None:
                    problems.append(f"{node.id}: child {child_id} does not exist")
                elif child.parent_id != node.id:
                    problems.append(
                        f"{node.id}: lists {child_id} whose parent is {child.parent_id}"
                    )
            if len(set(node.children)) != len(node.children):
                problems.append(f"{node.id}: duplicate entries in children")

        expected_roots = {nid for nid, n in self.nodes.items() if n.parent_id is None}
        if set(self.roots) != expected_roots or len(self.roots) != len(expected_roots):
            problems.append("roots list does not match nodes without a parent")

        if self.nodes and not nx.is_forest(self.to_networkx()):
            problems.append("parent links contain a cycle")
        return problems
