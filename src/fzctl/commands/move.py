"""Command: move a note (and its subtree) under a new parent."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fzctl.services.hierarchy import HierarchyService

if TYPE_CHECKING:
    from fzctl.commands._context import AppContext


@click.command()
@click.argument("source")
@click.argument("target")
@click.option("--dry-run", is_flag=True, help="List the renumbering without applying it.")
@click.pass_obj
def move(app: AppContext, source: str, target: str, dry_run: bool) -> None:
    """Make SOURCE the first child of TARGET, renumbering its subtree.

    \b
    Examples:
      fzctl move 22 21          # 22 -> 21.1, 22.1 -> 21.1.1
      fzctl move 22 21 --dry-run
    """
    app.emit(HierarchyService(app.vault).move(source, target, dry_run=dry_run))
