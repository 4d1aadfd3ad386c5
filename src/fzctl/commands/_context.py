"""AppContext - shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy Vault initialization and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fzctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from fzctl.config.settings import FzSettings
    from fzctl.infrastructure.vault import Vault
    from fzctl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The vault is lazily initialized on first use so ``--help`` and
    ``--version`` never scan the filesystem.
    """

    def __init__(self, settings: FzSettings) -> None:
        self.settings = settings
        self._vault: Vault | None = None

        from fzctl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def vault(self) -> Vault:
        """The vault instance (created lazily on first access)."""
        if self._vault is None:
            from fzctl.infrastructure.vault import Vault

            self._vault = Vault(self.settings)
            click.get_current_context().call_on_close(self._vault.close)
        return self._vault

    def emit(self, result: ServiceResult, *, exit_on_error: bool = True) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout. Warnings go to stderr so they don't
          pollute piped output (JSON mode already carries them).
        * Failure: writes to stderr and exits with code 1, unless
          *exit_on_error* is False (interactive shell).
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            if exit_on_error:
                raise SystemExit(1)
