"""
Reporter — status messages on stderr (Rich) and the result sink on stdout.

Status output never touches stdout, so results can be piped straight into
the next tool. Probes call these helpers instead of printing directly.
"""

import sys
import threading

from rich.console import Console
from rich.panel import Panel
from rich import box
from rich.markup import escape
from rich.text import Text

from probing.errors import OutputWriteError

console = Console(stderr=True, highlight=False)
# fatal errors are shown even when silenced
_fatal_console = Console(stderr=True, highlight=False)

_verbose = False


def configure(verbose: bool = False, silent: bool = False):
    global _verbose
    _verbose = verbose and not silent
    console.quiet = silent


# ── Generic helpers ─────────────────────────────────────────────────────────

def banner(title: str, subtitle: str = ""):
    content = Text(title, style="bold white")
    if subtitle:
        content.append(f"\n{subtitle}", style="dim")
    console.print(Panel(content, style="cyan", box=box.DOUBLE))


def info(msg: str):
    console.print(f"[bold blue][*][/bold blue] {msg}")


def warning(msg: str):
    console.print(f"[bold yellow][!][/bold yellow] {msg}")


def error(msg: str):
    _fatal_console.print(f"[bold red][-][/bold red] {escape(msg)}")


def debug(msg: str):
    if _verbose:
        console.print(Text(f"[.] {msg}", style="dim"))


# ── Run summary ──────────────────────────────────────────────────────────────

def summary(run, matched: bool = False):
    label = "matched" if matched else "reachable"
    console.rule("[bold cyan]SUMMARY[/bold cyan]")
    console.print(
        f"  [bold]{run.scheduler}[/bold] — {run.dispatched} host(s) probed, "
        f"[green]{run.emitted} {label}[/green], [dim]{run.dropped} dropped[/dim] "
        f"in {run.elapsed:.2f}s"
    )


# ── Results ──────────────────────────────────────────────────────────────────

def format_result(result) -> str:
    parts = [result.url]
    for capture in result.captures:
        parts.append(capture.replace("\r", " ").replace("\n", " "))
    return " ".join(parts)


class ResultSink:
    """Single serialisation point for results: one whole line per emit."""

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else sys.stdout
        self.emitted = 0
        self._lock = threading.Lock()

    def emit(self, result):
        line = format_result(result) + "\n"
        with self._lock:
            try:
                self.stream.write(line)
                self.stream.flush()
            except OSError as exc:
                raise OutputWriteError(f"Cannot write result: {exc}") from exc
            self.emitted += 1
