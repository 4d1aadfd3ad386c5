"""Tests for config section models."""

import pytest
from pydantic import ValidationError

from fzctl.config.models import HistoryConfig, RenameConfig, VaultConfig


class TestVaultConfig:
    def test_defaults(self) -> None:
        cfg = VaultConfig()
        assert cfg.folder == ""
        assert cfg.extensions == (".md",)

    def test_extensions_gain_dot(self) -> None:
        assert VaultConfig(extensions=("md", ".txt")).extensions == (".md", ".txt")

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            VaultConfig().folder = "x"  # type: ignore[misc]


class TestHistoryConfig:
    def test_default_capacity(self) -> None:
        assert HistoryConfig().capacity == 50

    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            HistoryConfig(capacity=0)


class TestRenameConfig:
    def test_enabled_by_default(self) -> None:
        assert RenameConfig().enabled is True
