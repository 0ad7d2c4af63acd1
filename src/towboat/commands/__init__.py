"""Subcommand modules for towboat.

Provides register_commands() which uses deferred imports to keep
``towboat --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the standalone commands on the root CLI group."""
    from towboat.commands.deploy import deploy
    from towboat.commands.remove import remove

    cli.add_command(deploy)
    cli.add_command(remove)
