"""BaseService - foundation for fzctl services.

Every service receives a :class:`Vault` at construction time and reaches
the graph, history and persistence queue through it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fzctl.infrastructure.vault import Vault

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes."""

    def __init__(self, vault: Vault) -> None:
        self._vault = vault

    def _persistence_warnings(self) -> list[str]:
        """Wait for queued file operations and report failures as warnings.

        INVARIANT: Persistence failures are warnings, never errors.
        """
        failures = self._vault.flush()
        for failure in failures:
            logger.debug("Surfacing persistence failure: %s", failure)
        return [str(f) for f in failures]
