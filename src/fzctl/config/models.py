"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, fzctl.toml only contains overrides.
An empty fzctl.toml (or none at all) is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

# --- fzctl.toml sections ---


class VaultConfig(BaseModel):
    """[vault] section.

    Attributes:
        folder: Vault-relative folder to scan; empty scans the whole vault.
        extensions: File suffixes treated as notes.
    """

    model_config = {"frozen": True}

    name: str = "my-vault"
    folder: str = ""
    extensions: tuple[str, ...] = (".md",)

    @field_validator("extensions")
    @classmethod
    def _dotted(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(ext if ext.startswith(".") else f".{ext}" for ext in value)


class HistoryConfig(BaseModel):
    """[history] section."""

    model_config = {"frozen": True}

    capacity: int = Field(default=50, ge=1)


class RenameConfig(BaseModel):
    """[rename] section. ``enabled = false`` keeps moves in memory only."""

    model_config = {"frozen": True}

    enabled: bool = True
