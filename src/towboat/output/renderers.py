"""Rich renderers for deploy/remove results.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from towboat.output.console import create_console, get_output, style_for_action

if TYPE_CHECKING:
    from rich.console import Console

    from towboat.services.result import ServiceResult

# Actions that leave the target as it was; hidden unless verbose.
_QUIET_ACTIONS = frozenset({"unchanged", "skip"})


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        _render_run(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: one changed target per line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} - {msg}"

    lines = [
        f"{a['action']} {a['target']}"
        for a in result.actions
        if a.get("action") not in _QUIET_ACTIONS and a.get("action") != "mkdir"
    ]
    return "\n".join(lines)


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line, flagged when nothing was written."""
    label = Text("OK", style="tow.ok")
    op = Text(f"  {result.op}", style="tow.op")
    if result.data.get("dry_run"):
        console.print(label, op, Text("  (dry run, nothing written)", style="tow.dry"))
    else:
        console.print(label, op)


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="tow.key")
    if key.endswith("_dir"):
        v = Text(str(value), style="tow.path")
    elif key == "build_tag":
        v = Text(str(value), style="tow.tag")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _action_table(actions: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    """Build a Rich Table of planner actions."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Action", no_wrap=True)
    table.add_column("Target")
    table.add_column("Mode")
    if verbose:
        table.add_column("Source", style="tow.path")
        table.add_column("Note", style="dim")

    for action in actions:
        name = str(action.get("action", ""))
        row: list[Text | str] = [
            Text(name, style=style_for_action(name)),
            str(action.get("target", "")),
            str(action.get("mode") or ""),
        ]
        if verbose:
            row.append(str(action.get("source") or ""))
            row.append(str(action.get("note") or ""))
        table.add_row(*row)

    return table


def _summary_line(console: Console, summary: dict[str, int]) -> None:
    if not summary:
        console.print(Text("  nothing to do", style="dim"))
        return
    parts = [
        Text(f"{count} {action}", style=style_for_action(action))
        for action, count in summary.items()
    ]
    line = Text("  ")
    line.append(Text(", ").join(parts))
    console.print(line)


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Renderers ─────────────────────────────────────────────────────────


def _render_run(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a completed deploy or remove."""
    _status_line(console, result)
    for key in ("package", "build_tag", "target_dir"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose and "configs" in result.data:
        _field(console, "configs", ", ".join(result.data["configs"]) or "(none)")

    actions = result.actions
    if not verbose:
        actions = [a for a in actions if a.get("action") not in _QUIET_ACTIONS]
    if actions:
        console.print()
        console.print(_action_table(actions, verbose=verbose))
    console.print()
    _summary_line(console, result.data.get("summary", {}))

    if verbose:
        _render_meta(console, result)


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="tow.error")
    op = Text(f"  {result.op}", style="tow.op")
    console.print(label, op, Text(" - "), msg)

    if err and err.detail:
        for k, v in err.detail.items():
            if v is not None:
                _field(console, k, v)

    applied = [a for a in result.actions if a.get("action") not in _QUIET_ACTIONS]
    if applied:
        console.print()
        console.print(Text("  applied before the failure:", style="dim"))
        console.print(_action_table(applied, verbose=verbose))

    if verbose:
        _render_meta(console, result)
