"""Subcommand modules for fzctl.

Provides register_commands() which uses deferred imports to keep
``fzctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from fzctl.commands.hierarchy import check, next_id, show, stats, tree
    from fzctl.commands.move import move
    from fzctl.commands.shell import shell

    for command in (tree, show, stats, check, next_id, move, shell):
        cli.add_command(command)
