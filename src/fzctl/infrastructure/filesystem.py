"""Filesystem operations for note discovery and renaming.

INVARIANT: Files are truth. The in-memory graph is a derived view that a
full refresh must always be able to rebuild from filenames alone.
"""

from __future__ import annotations

from pathlib import Path

from fzctl.domain.builder import FileEntry

# Directories to skip when discovering note files.
_SKIP_DIRS = frozenset({".fzctl", ".obsidian", ".git", ".trash"})

DEFAULT_EXTENSIONS: tuple[str, ...] = (".md",)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def resolve_folder(vault_root: Path, folder: str | None) -> Path:
    """Resolve a vault-relative *folder* filter, refusing paths outside the vault."""
    if not folder or not folder.strip():
        return vault_root
    path = (vault_root / folder.strip()).resolve()
    if not path.is_relative_to(vault_root.resolve()):
        msg = f"Folder escapes vault root: {folder}"
        raise ValueError(msg)
    return path


def find_note_files(
    vault_root: Path,
    *,
    folder: str | None = None,
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
) -> list[Path]:
    """Discover note files under *vault_root* (or its *folder* subtree).

    Skips ``.fzctl/``, ``.obsidian/``, ``.git/`` and ``.trash/``.
    """
    base = resolve_folder(vault_root, folder)
    if not base.exists():
        return []

    results: list[Path] = []
    for path in base.rglob("*"):
        if not path.is_file():
            continue
        if any(part in _SKIP_DIRS for part in path.relative_to(base).parts):
            continue
        if path.suffix in extensions:
            results.append(path)
    return sorted(results)


def list_note_files(
    vault_root: Path,
    *,
    folder: str | None = None,
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
) -> list[FileEntry]:
    """The file lister: one :class:`FileEntry` per note, handle = its Path."""
    return [
        FileEntry(handle=path, filename=path.stem)
        for path in find_note_files(vault_root, folder=folder, extensions=extensions)
    ]


# ---------------------------------------------------------------------------
# Rename / delete
# ---------------------------------------------------------------------------


def renamed_path(path: Path, old_name: str, new_name: str) -> tuple[Path, Path]:
    """Return ``(source, destination)`` for renaming stem *old_name* to *new_name*.

    The handle's folder and extension are kept. The source is derived from
    *old_name* so chained renames of one file resolve correctly.
    """
    return path.with_name(old_name + path.suffix), path.with_name(new_name + path.suffix)


def rename_note_file(source: Path, destination: Path) -> Path:
    """Rename *source* to *destination*, refusing to overwrite."""
    if not source.is_file():
        msg = f"Source note does not exist: {source}"
        raise FileNotFoundError(msg)
    if destination.exists():
        msg = f"Destination already exists: {destination}"
        raise FileExistsError(msg)
    return source.rename(destination)


def delete_note_file(path: Path) -> None:
    path.unlink()
