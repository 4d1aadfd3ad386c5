"""Command: interactive restructuring session with undo/redo.

The undo history lives as long as the session; a ``refresh`` rebuilds the
graph from disk and starts a new history.
"""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

import click

from fzctl.services.hierarchy import HierarchyService
from fzctl.services.result import ServiceResult

if TYPE_CHECKING:
    from fzctl.commands._context import AppContext

_SHELL_HELP = """\
  move SOURCE TARGET [--dry-run]   make SOURCE the first child of TARGET
  undo | redo                      step through the move history
  history                          list recorded moves
  tree | stats | check             inspect the forest
  show REF | next REF [--branch]   inspect one note / suggest an identifier
  refresh                          rebuild from disk (clears history)
  quit                             leave the shell"""


def _usage(op: str, usage: str) -> ServiceResult:
    return ServiceResult.fail(op, "USAGE", f"usage: {usage}")


def _dispatch(app: AppContext, name: str, args: list[str]) -> ServiceResult | None:
    service = HierarchyService(app.vault)
    flags = {a for a in args if a.startswith("--")}
    positional = [a for a in args if not a.startswith("--")]

    if name == "move":
        if len(positional) != 2:
            return _usage(name, "move SOURCE TARGET [--dry-run]")
        return service.move(*positional, dry_run="--dry-run" in flags)
    if name == "undo":
        return service.undo()
    if name == "redo":
        return service.redo()
    if name == "history":
        return service.history()
    if name == "tree":
        return service.tree()
    if name == "stats":
        return service.stats()
    if name == "check":
        return service.check()
    if name == "show":
        if len(positional) != 1:
            return _usage(name, "show REF")
        return service.show(positional[0])
    if name == "next":
        if len(positional) != 1:
            return _usage(name, "next REF [--branch]")
        return service.next_id(positional[0], branch="--branch" in flags)
    if name == "refresh":
        app.vault.refresh()
        return service.tree()
    return None


@click.command()
@click.pass_obj
def shell(app: AppContext) -> None:
    """Restructure the forest interactively, with undo and redo."""
    click.echo("fzctl shell. Type 'help' for commands, 'quit' to leave.")
    while True:
        try:
            line = click.prompt("fz", default="", show_default=False, prompt_suffix="> ")
        except click.Abort:
            break
        try:
            words = shlex.split(line)
        except ValueError as exc:
            click.echo(f"ERROR: {exc}", err=True)
            continue
        if not words:
            continue

        name, args = words[0].lower(), words[1:]
        if name in ("quit", "exit"):
            break
        if name == "help":
            click.echo(_SHELL_HELP)
            continue

        result = _dispatch(app, name, args)
        if result is None:
            click.echo(f"Unknown command: {name}. Type 'help'.", err=True)
            continue
        app.emit(result, exit_on_error=False)
