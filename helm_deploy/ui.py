"""Console output for deploy runs.

Everything the operator sees goes through this module and the shared
Rich ``console``; module loggers stay diagnostic only.  Rich drops colour
and box drawing by itself when stdout is not a terminal.
"""

from __future__ import annotations

from typing import Iterable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from helm_deploy.errors import DeployError
from helm_deploy.state.models import DesiredState, ReleaseRecord

console = Console(stderr=False, force_terminal=None)

#: Line kind → (glyph, message style).
_STYLES = {
    "ok": ("[bold green]✓[/]", ""),
    "fail": ("[bold red]✗[/]", "red"),
    "warn": ("[bold yellow]⚠[/]", "yellow"),
    "step": ("[bold cyan]›[/]", ""),
    "info": ("[dim]·[/]", "dim"),
}


def _line(kind: str, msg: str) -> None:
    glyph, style = _STYLES[kind]
    body = f"[{style}]{msg}[/]" if style else msg
    console.print(f"  {glyph} {body}")


def phase(title: str) -> None:
    """Section rule, e.g. ``FETCH`` or ``RELEASES``."""
    console.print()
    console.rule(f"[bold blue]{title}[/]", align="left")


def ok(msg: str) -> None:
    _line("ok", msg)


def fail(msg: str) -> None:
    _line("fail", msg)


def warn(msg: str) -> None:
    _line("warn", msg)


def step(msg: str) -> None:
    _line("step", msg)


def info(msg: str) -> None:
    _line("info", msg)


def detail(key: str, value: str) -> None:
    console.print(f"    [bold]{key}[/]: {value}")


def fatal(exc: DeployError) -> None:
    """Report an error that ends the run, with its hint if any."""
    console.print(f"[bold red]ERROR:[/] {exc}")
    if exc.hint:
        info(exc.hint)


def release_result(record: ReleaseRecord) -> None:
    """One status line for a reconciled release."""
    if record.desired == DesiredState.ABSENT:
        if record.failed:
            fail(f"{record.name}: removal failed ({record.error})")
        elif record.removed:
            ok(f"{', '.join(record.removed)} removed")
        else:
            info(f"{record.name} disabled, nothing deployed")
    elif record.failed:
        fail(f"{record.name}: {record.error}")
    else:
        ok(f"{record.name} deployed")


def release_log(release: str, text: str) -> None:
    """Echo a release log verbatim under a header naming the release."""
    console.rule(f"[dim]{release}[/]", style="dim", align="left")
    console.print(text, markup=False, highlight=False)


def failed_table(rows: Iterable[tuple[str, str]], title: Optional[str] = None) -> None:
    """Red panel listing ``(release, status)`` pairs left in a failed state."""
    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("RELEASE")
    table.add_column("STATUS", style="red")
    for name, status in rows:
        table.add_row(name, status)
    console.print()
    console.print(
        Panel(table, title=f"[bold red]{title or 'FAILED releases'}[/]", border_style="red")
    )


def elapsed_str(seconds: float) -> str:
    """Format seconds as ``Xm Ys``."""
    m, s = divmod(int(seconds), 60)
    return f"{m}m {s}s" if m else f"{s}s"
