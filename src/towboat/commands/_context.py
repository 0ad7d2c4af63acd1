"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Holds the global output flags, builds per-run
settings, and centralizes result emission (stdout/stderr routing + exit
codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from towboat.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from towboat.config.settings import TowSettings
    from towboat.services.deploy import DeployRequest
    from towboat.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.
    """

    def __init__(self, settings: TowSettings) -> None:
        self.settings = settings

        # Configure structured logging
        from towboat.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        # Enable telemetry context var when verbose
        if settings.verbose:
            from towboat.services.telemetry import enable_telemetry

            enable_telemetry()

    def settings_for(self, package: str, **cli_flags: Any) -> TowSettings:
        """Settings for one run of *package*, inheriting the global flags."""
        from towboat.config.settings import TowSettings

        return TowSettings.from_cli(
            package=package,
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
            log_json=self.settings.log_json,
            **cli_flags,
        )

    def request_for(self, package: str, **cli_flags: Any) -> DeployRequest:
        """Build the service request for one run of *package*.

        Invalid settings (an empty build tag, say) are usage errors.
        """
        from pydantic import ValidationError

        from towboat.services.deploy import DeployRequest

        try:
            run = self.settings_for(package, **cli_flags)
            return DeployRequest(
                source_dir=run.package_dir,
                target_dir=run.resolved_target_dir,
                build_tag=run.build_tag,
                dry_run=run.dry_run,
                force=run.force,
                adopt=run.adopt,
            )
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()
            )
            raise click.UsageError(f"Invalid settings: {problems}") from exc

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        # In JSON mode, warnings are already in the serialized payload.
        if not settings.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
        if result.ok:
            if output:
                click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
