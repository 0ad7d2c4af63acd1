"""Custom Click base classes with --examples support, plus shared options.

TowCommand and TowGroup accept an ``examples`` parameter. When
``--examples`` is passed, the command prints usage examples and exits.
This keeps ``--help`` concise while making examples available on demand.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

_F = TypeVar("_F", bound=Callable[..., Any])


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class TowCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class TowGroup(click.Group):
    """Click Group subclass that supports an ``--examples`` flag.

    Sets ``command_class = TowCommand`` so all subcommands automatically
    accept the ``examples`` parameter without explicit ``cls=`` each time.
    """

    command_class = TowCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


def package_options(func: _F) -> _F:
    """Options shared by ``deploy`` and ``remove``.

    Unset options stay None so ``TOWBOAT_*`` env vars and the package's
    ``boat.toml`` can fill them.
    """
    options = [
        click.argument("package"),
        click.option(
            "-d",
            "--dir",
            "stow_dir",
            type=click.Path(file_okay=False),
            default=None,
            help="Directory holding the packages [default: .]",
        ),
        click.option(
            "-t",
            "--target",
            "target_dir",
            default=None,
            help="Directory to deploy into [default: ~]",
        ),
        click.option(
            "-b",
            "--build",
            "build_tag",
            default=None,
            help="Active build tag [default: default]",
        ),
        click.option("--dry-run", is_flag=True, help="Show what would happen, change nothing."),
        click.option(
            "-f", "--force", is_flag=True, help="Overwrite modified or colliding targets."
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func
