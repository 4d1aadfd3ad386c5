"""Graph builder - turns a flat file list into a ZettelGraph forest.

Pipeline: SCAN filenames -> CREATE one node per (file, identifier) ->
INDEX identifier -> node id -> LINK each node to its inferred parent.
Linking is a single dictionary lookup per node, so the build is O(n).

Files whose names contain no identifier are simply left out.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from fzctl.domain.graph import ParseCollision, ZettelGraph, ZettelNode
from fzctl.domain.identifiers import Identifier, format_identifier, parent_of, parse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileEntry:
    """A listed file: an opaque handle plus its filename stem."""

    handle: Any
    filename: str


def extract_identifiers(filename: str) -> list[Identifier]:
    """Distinct identifiers in *filename*, in first-seen order."""
    seen: dict[str, Identifier] = {}
    for identifier in parse(filename):
        seen.setdefault(format_identifier(identifier), identifier)
    return list(seen.values())


def extract_title(filename: str, identifier: Identifier) -> str:
    """Strip a leading *identifier* and one ``-``/``:`` separator from *filename*.

    Falls back to the raw filename when nothing is left.
    """
    pattern = rf"^{re.escape(format_identifier(identifier))}\s*[-:]?\s*"
    return re.sub(pattern, "", filename, count=1) or filename


def make_node_id(identifier: Identifier, filename: str) -> str:
    return f"{format_identifier(identifier)}-{filename}"


def build_graph(files: Iterable[FileEntry]) -> ZettelGraph:
    """Build the forest from *files*.

    Two files carrying the same identifier both become nodes; the first one
    listed receives the children and a :class:`ParseCollision` is recorded.
    """
    graph = ZettelGraph()
    by_identifier: dict[str, list[str]] = {}

    for entry in files:
        for identifier in extract_identifiers(entry.filename):
            node_id = make_node_id(identifier, entry.filename)
            if node_id in graph.nodes:
                # Same stem in two folders.
                n = 2
                while f"{node_id}~{n}" in graph.nodes:
                    n += 1
                node_id = f"{node_id}~{n}"
            graph.nodes[node_id] = ZettelNode(
                id=node_id,
                title=extract_title(entry.filename, identifier),
                identifier=identifier,
                basename=entry.filename,
                file=entry.handle,
            )
            by_identifier.setdefault(format_identifier(identifier), []).append(node_id)

    for key, node_ids in by_identifier.items():
        if len(node_ids) > 1:
            collision = ParseCollision(identifier=key, node_ids=tuple(node_ids))
            graph.collisions.append(collision)
            logger.warning("Parse collision: %s", collision)

    for node in graph.nodes.values():
        parent_identifier = parent_of(node.identifier)
        candidates = (
            by_identifier.get(format_identifier(parent_identifier))
            if parent_identifier is not None
            else None
        )
        if candidates:
            parent_id = candidates[0]
            node.parent_id = parent_id
            graph.nodes[parent_id].children.append(node.id)
        else:
            graph.roots.append(node.id)

    logger.debug(
        "Built graph: %d nodes, %d roots, %d collisions",
        len(graph.nodes),
        len(graph.roots),
        len(graph.collisions),
    )
    return graph
