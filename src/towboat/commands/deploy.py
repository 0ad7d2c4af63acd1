"""Command: deploy a package into the target directory."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from towboat.commands._base import TowCommand, package_options

if TYPE_CHECKING:
    from towboat.commands._context import AppContext


@click.command(
    cls=TowCommand,
    examples="""\
  towboat deploy vim
  towboat deploy shell -b linux
  towboat deploy shell -d ~/dotfiles -t ~ -b macos
  towboat deploy shell --dry-run
  towboat deploy git --adopt
  towboat --json deploy shell -b linux""",
)
@package_options
@click.option("--adopt", is_flag=True, help="Move colliding files into the package, then link.")
@click.pass_obj
def deploy(
    app: AppContext,
    package: str,
    stow_dir: str | None,
    target_dir: str | None,
    build_tag: str | None,
    dry_run: bool,
    force: bool,
    adopt: bool,
) -> None:
    """Deploy PACKAGE: link plain files, write tag-processed ones."""
    from towboat.services.deploy import DeployService

    request = app.request_for(
        package,
        stow_dir=stow_dir,
        target_dir=target_dir,
        build_tag=build_tag,
        dry_run=dry_run or None,
        force=force or None,
        adopt=adopt or None,
    )
    app.emit(DeployService().deploy(request))
