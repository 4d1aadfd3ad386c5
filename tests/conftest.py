"""Shared pytest fixtures and test helpers for fzctl tests."""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterable
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from fzctl.config.settings import FzSettings
from fzctl.domain.builder import FileEntry, build_graph
from fzctl.domain.graph import ZettelGraph, ZettelNode
from fzctl.domain.moves import RenameRequest
from fzctl.infrastructure.vault import Vault


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's FZCTL_* environment out of tests."""
    for name in ("FZCTL_CONFIG", "FZCTL_VAULT_ROOT", "FZCTL_HISTORY__CAPACITY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Generator[None]:
    """CLI invocations reconfigure logging; undo that after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    fz_level = logging.getLogger("fzctl").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("fzctl").setLevel(fz_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def vault_root(tmp_path: Path) -> Path:
    """Temporary vault directory with a small numbered forest.

    21 - Intro
      21.1 - Detail
      21a - Aside
    22 - Idea
      22.1 - Support
    """
    write_notes(
        tmp_path,
        ["21 - Intro", "21.1 - Detail", "21a - Aside", "22 - Idea", "22.1 - Support"],
    )
    return tmp_path


@pytest.fixture
def vault(vault_root: Path) -> Generator[Vault]:
    """Vault over ``vault_root`` with synchronous renames."""
    settings = FzSettings.from_cli(vault_root=vault_root, sync=True)
    v = Vault(settings)
    try:
        yield v
    finally:
        v.close()


@pytest.fixture
def _isolated_vault(vault_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the temp vault root so the CLI picks it up."""
    monkeypatch.chdir(vault_root)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write_notes(root: Path, stems: Iterable[str], *, suffix: str = ".md") -> list[Path]:
    """Create empty note files named ``{stem}{suffix}`` under *root*."""
    paths = []
    for stem in stems:
        path = root / f"{stem}{suffix}"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"# {stem}\n", encoding="utf-8")
        paths.append(path)
    return paths


def graph_of(*stems: str) -> ZettelGraph:
    """Build a graph from bare filename stems (handles are fake paths)."""
    return build_graph([FileEntry(handle=Path(f"/vault/{s}.md"), filename=s) for s in stems])


def node(graph: ZettelGraph, identifier: str) -> ZettelNode:
    """The single node carrying *identifier*."""
    matches = graph.find(identifier)
    assert len(matches) == 1, f"{identifier}: {[n.id for n in matches]}"
    return matches[0]


def identifiers(graph: ZettelGraph) -> dict[str, str]:
    """``{node_id: current identifier}`` for the whole graph."""
    return {nid: n.number for nid, n in graph.nodes.items()}


class RecordingStore:
    """NoteStore double that records rename requests."""

    def __init__(self, *, fail: bool = False) -> None:
        self.requests: list[RenameRequest] = []
        self._fail = fail

    def submit_rename(self, request: RenameRequest) -> None:
        if self._fail:
            msg = "disk full"
            raise OSError(msg)
        self.requests.append(request)

    def pairs(self) -> list[tuple[str, str]]:
        return [(r.old_name, r.new_name) for r in self.requests]


def ok_data(result: Any) -> dict[str, Any]:
    """Assert a ServiceResult succeeded and return its data."""
    assert result.ok, result.error
    return result.data
