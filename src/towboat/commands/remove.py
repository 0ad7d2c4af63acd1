"""Command: remove a deployed package from the target directory."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from towboat.commands._base import TowCommand, package_options

if TYPE_CHECKING:
    from towboat.commands._context import AppContext


@click.command(
    cls=TowCommand,
    examples="""\
  towboat remove vim
  towboat remove shell -b linux --dry-run
  towboat remove shell -f""",
)
@package_options
@click.pass_obj
def remove(
    app: AppContext,
    package: str,
    stow_dir: str | None,
    target_dir: str | None,
    build_tag: str | None,
    dry_run: bool,
    force: bool,
) -> None:
    """Remove PACKAGE's links and processed files (edited files are kept)."""
    from towboat.services.deploy import DeployService

    request = app.request_for(
        package,
        stow_dir=stow_dir,
        target_dir=target_dir,
        build_tag=build_tag,
        dry_run=dry_run or None,
        force=force or None,
    )
    app.emit(DeployService().remove(request))
