"""Root CLI group for towboat with global flags and command registration."""

from __future__ import annotations

import click

from towboat import __version__
from towboat.commands import register_commands
from towboat.commands._base import TowGroup
from towboat.commands._context import AppContext
from towboat.config.settings import TowSettings


@click.group(
    cls=TowGroup,
    invoke_without_command=True,
    examples="""\
  towboat deploy vim
  towboat deploy shell -b linux --dry-run
  towboat -v deploy shell -b macos
  towboat --json remove shell""",
)
@click.version_option(version=__version__, prog_name="towboat")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
) -> None:
    """towboat — deploy dotfile packages with build-tag sections."""
    ctx.ensure_object(dict)
    settings = TowSettings.from_cli(
        json_output=json_output or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_json=log_json or None,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
