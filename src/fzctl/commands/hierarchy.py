"""Read-only hierarchy commands: tree, show, stats, check, next."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fzctl.services.hierarchy import HierarchyService

if TYPE_CHECKING:
    from fzctl.commands._context import AppContext


@click.command()
@click.pass_obj
def tree(app: AppContext) -> None:
    """Show the note forest inferred from filenames."""
    app.emit(HierarchyService(app.vault).tree())


@click.command()
@click.argument("ref")
@click.pass_obj
def show(app: AppContext, ref: str) -> None:
    """Show one note with its parent, children and siblings.

    REF is an identifier such as 21.1b, or a node id.
    """
    app.emit(HierarchyService(app.vault).show(ref))


@click.command()
@click.pass_obj
def stats(app: AppContext) -> None:
    """Count notes, branches, roots and collisions."""
    app.emit(HierarchyService(app.vault).stats())


@click.command()
@click.pass_obj
def check(app: AppContext) -> None:
    """Verify parent/child links and report identifier collisions."""
    app.emit(HierarchyService(app.vault).check())


@click.command(name="next")
@click.argument("ref")
@click.option("--branch", is_flag=True, help="Allocate a branch (21 -> 21a) instead of a sequence.")
@click.pass_obj
def next_id(app: AppContext, ref: str, branch: bool) -> None:
    """Suggest the next unused identifier after REF."""
    app.emit(HierarchyService(app.vault).next_id(ref, branch=branch))
