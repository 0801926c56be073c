"""Console output for the CLI.

Command results go to stdout; standalone warnings and errors go to stderr.
In JSON mode results are written as plain JSON so they can be piped into
other tools without any Rich markup.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Dict, Iterable, Mapping, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

_console = Console(soft_wrap=True, highlight=False)
_err_console = Console(stderr=True, soft_wrap=True, highlight=False)


def emit_info(message: str) -> None:
    _console.print(escape(message))


def emit_success(message: str) -> None:
    _console.print(f"[green]{escape(message)}[/green]")


def emit_warning(message: str) -> None:
    _err_console.print(f"[yellow]{escape(message)}[/yellow]")


def emit_error(message: str) -> None:
    _err_console.print(f"[bold red]{escape(message)}[/bold red]")


def print_json(data: Any) -> None:
    sys.stdout.write(json.dumps(data, indent=2, ensure_ascii=False, default=str) + "\n")
    sys.stdout.flush()


def _print_list(title: str, items: Iterable[str], style: str) -> None:
    items = list(items)
    if not items:
        return
    _console.print(f"\n[{style}]{title}:[/{style}]")
    for item in items:
        _console.print(f"- {escape(str(item))}")


def print_result(
    result: Mapping[str, Any],
    fmt: str = "text",
    summary: Optional[str] = None,
    lines: Optional[Iterable[str]] = None,
) -> None:
    """Render a command result.

    Args:
        result: Structured result. ``errors`` and ``warnings`` keys, when
            present, are listed separately in text mode.
        fmt: ``"text"`` or ``"json"``.
        summary: Headline printed first in text mode.
        lines: Extra detail lines printed after the headline in text mode.
    """
    if fmt == "json":
        print_json(dict(result))
        return

    if summary:
        _console.print(escape(summary))
    for line in lines or ():
        _console.print(escape(line))
    _print_list("Errors", result.get("errors") or (), "bold red")
    _print_list("Warnings", result.get("warnings") or (), "yellow")


def _flag(value: bool) -> str:
    return "[green]yes[/green]" if value else "[dim]no[/dim]"


def render_status(progress: Dict[str, Any], repo_root: str, next_step: Optional[str] = None) -> None:
    """Draw the pipeline status panel."""
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="bold cyan")
    table.add_column("Value")

    stage_a = progress["stage-a"]
    stage_b = progress["stage-b"]
    stage_c = progress["stage-c"]

    table.add_row("Repo root", escape(repo_root))
    table.add_row("Current stage", escape(str(progress["stage"])))
    table.add_row(
        "Stage A",
        f"must-ask {stage_a['mustAskAnswered']}/{stage_a['mustAskTotal']}, "
        f"docs {stage_a['docsWritten']}/{stage_a['docsTotal']}, "
        f"validated {_flag(stage_a['validated'])}, approved {_flag(stage_a['userApproved'])}",
    )
    table.add_row(
        "Stage B",
        f"drafted {_flag(stage_b['drafted'])}, validated {_flag(stage_b['validated'])}, "
        f"packs reviewed {_flag(stage_b['packsReviewed'])}, approved {_flag(stage_b['userApproved'])}",
    )
    table.add_row(
        "Stage C",
        f"scaffold {_flag(stage_c['scaffoldApplied'])}, configs {_flag(stage_c['configsGenerated'])}, "
        f"manifest {_flag(stage_c['manifestUpdated'])}, wrappers {_flag(stage_c['wrappersSynced'])}, "
        f"approved {_flag(stage_c['userApproved'])}",
    )
    if next_step:
        table.add_row("Next", escape(next_step))

    _console.print(Panel(table, title="[bold]Init pipeline status[/bold]", border_style="blue"))


def render_notice(title: str, body: str) -> None:
    """Draw a highlighted advisory box."""
    _console.print(
        Panel(escape(body), title=f"[bold yellow]{escape(title)}[/bold yellow]", border_style="yellow")
    )
