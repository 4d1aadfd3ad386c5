"""Vault - the single dependency injected into every service.

Owns the file lister, the lazily built forest, the undo/redo history and the
persistence queue. The graph is built on first access and rebuilt wholesale
by :meth:`refresh`; between refreshes it is mutated only by moves.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fzctl.domain.builder import FileEntry, build_graph
from fzctl.domain.history import CommandHistory
from fzctl.infrastructure.filesystem import list_note_files
from fzctl.infrastructure.persistence import PersistenceFailure, PersistenceQueue

if TYPE_CHECKING:
    from pathlib import Path

    from fzctl.config.settings import FzSettings
    from fzctl.domain.graph import ZettelGraph

logger = logging.getLogger(__name__)


class Vault:
    """Note vault rooted at ``settings.vault_root``."""

    def __init__(self, settings: FzSettings, *, store: PersistenceQueue | None = None) -> None:
        self.settings = settings
        self._graph: ZettelGraph | None = None
        self.history = CommandHistory(capacity=settings.history.capacity)
        self.store = store or PersistenceQueue(sync=settings.sync, enabled=settings.rename.enabled)

    @property
    def root(self) -> Path:
        return self.settings.vault_root

    def list_files(self) -> list[FileEntry]:
        return list_note_files(
            self.root,
            folder=self.settings.vault.folder or None,
            extensions=self.settings.vault.extensions,
        )

    @property
    def graph(self) -> ZettelGraph:
        """The forest, built from the file list on first access."""
        if self._graph is None:
            self._graph = build_graph(self.list_files())
        return self._graph

    def refresh(self) -> ZettelGraph:
        """Wait for pending file operations, then rebuild the graph from disk.

        Node ids may change across a rebuild, so the history is cleared.
        """
        self.store.drain()
        self._graph = build_graph(self.list_files())
        self.history.clear()
        logger.debug("Vault refreshed: %d nodes", len(self._graph))
        return self._graph

    def flush(self) -> list[PersistenceFailure]:
        """Wait for pending file operations and return their failures."""
        return self.store.drain()

    def close(self) -> None:
        self.store.shutdown()
