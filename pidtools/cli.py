from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .descendants import collect_descendants, is_descendant
from .intmap import LIVE_PIDS_BUCKETS, MATCH_BUCKETS, IntegerSet
from .log import setup_logging
from .proc import (
    NoSuchProcess,
    ProcessVanished,
    ProcMemory,
    default_proc_root,
    list_live_pids,
    parent_of,
    pid_exists,
    read_cmdline,
    read_environ,
    read_memory,
)
from .util import invalid_pids, shquote

log = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    help="pidtools: inspect running processes (children, parents, command lines, environment, memory) via /proc.",
)
console = Console()
err_console = Console(stderr=True)

# getpenv exit code when the variable is not set in the target process
ENV_NOT_SET_EXIT = 254
# isachildof/isaparentof exit code when a process exits mid-walk
VANISHED_EXIT = 2


# -----------------------------
# Helpers
# -----------------------------


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"pidtools version {__version__}")
        raise typer.Exit()


def _proc_root(ctx: typer.Context | None) -> Path | None:
    if ctx is not None and isinstance(ctx.obj, Path):
        return ctx.obj
    return None


def error(msg: str) -> None:
    err_console.print(f"[red]Error:[/red] {msg}", highlight=False)


def require_valid_pids(pids: List[int]) -> None:
    bad = invalid_pids(pids)
    if bad:
        error(f"not a valid pid: {bad[0]}")
        raise typer.Exit(code=1)


def parent_lookup(proc_root: Path | None) -> Callable[[int], "int | None"]:
    return lambda pid: parent_of(pid, proc_root)


def memory_table(mem: ProcMemory, megabytes: bool) -> Table:
    table = Table(show_edge=False)
    table.add_column("field", style="bold")
    table.add_column("value", justify="right")
    table.add_column("unit")

    rows = [
        ("RssAnon", mem.rss_anon),
        ("RssFile", mem.rss_file),
        ("RssShmem", mem.rss_shmem),
        ("VmRSS", mem.vm_rss),
    ]
    for label, kb in rows:
        if kb is None:
            continue
        if megabytes:
            table.add_row(label, f"{kb / 1000.0:.3f}", "mB")
        else:
            table.add_row(label, str(kb), "kB")
    return table


def check_ancestry(ctx: typer.Context, pid: int, ancestor: int) -> None:
    require_valid_pids([pid, ancestor])
    try:
        found = is_descendant(pid, ancestor, parent_lookup(_proc_root(ctx)))
    except ProcessVanished as e:
        error(f"Pid {e.pid} disappeared while checking.")
        raise typer.Exit(code=VANISHED_EXIT)
    except NoSuchProcess as e:
        error(f"No such pid: {e.pid}")
        raise typer.Exit(code=1)
    raise typer.Exit(code=0 if found else 1)


# -----------------------------
# Commands
# -----------------------------


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str = typer.Option(None, "--log-level", help="Log level (default: $PIDTOOLS_LOG_LEVEL or WARNING)."),
    proc_root: Path = typer.Option(None, "--proc-root", help="Proc filesystem root (default: $PIDTOOLS_PROC_ROOT or /proc)."),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."),
) -> None:
    setup_logging(log_level)
    ctx.obj = proc_root


@app.command()
def getcpids(
    ctx: typer.Context,
    pids: List[int] = typer.Argument(..., help="Pid(s) whose children to print."),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Include grandchildren and every later generation."),
) -> None:
    """Print the child pids of one or more pids, sorted, on one line."""
    require_valid_pids(pids)
    proc_root = _proc_root(ctx)

    try:
        snapshot = list_live_pids(proc_root)
    except OSError as e:
        error(f"cannot read {proc_root or default_proc_root()}: {e.strerror or e}")
        raise typer.Exit(code=1)
    live = IntegerSet(LIVE_PIDS_BUCKETS)
    for pid in snapshot:
        live.add(pid)

    roots = IntegerSet(MATCH_BUCKETS)
    for pid in pids:
        if not roots.add(pid):
            log.debug("pid %d given more than once", pid)
            continue
        if not live.contains(pid):
            log.warning("pid %d is not running", pid)

    found = collect_descendants(pids, snapshot, recursive, parent_lookup(proc_root))
    if found:
        typer.echo(" ".join(str(p) for p in sorted(found.values())))


@app.command()
def getppid(ctx: typer.Context, pid: int = typer.Argument(..., help="Pid whose parent to print.")) -> None:
    """Print the parent pid of a pid (1 for processes without a parent)."""
    require_valid_pids([pid])
    proc_root = _proc_root(ctx)
    ppid = parent_of(pid, proc_root)
    if ppid is None:
        if pid_exists(pid, proc_root):
            error(f"cannot parse stat for pid {pid}")
        else:
            error(f"Invalid pid: {pid}")
        raise typer.Exit(code=1)
    typer.echo(str(ppid))


@app.command()
def getpcmd(
    ctx: typer.Context,
    pids: List[int] = typer.Argument(..., help="Pid(s) whose command line to print."),
    quote: bool = typer.Option(False, "--quote", help="Shell-quote each argument."),
) -> None:
    """Print the command line of each pid, one line per pid."""
    require_valid_pids(pids)
    proc_root = _proc_root(ctx)

    failed = False
    for pid in pids:
        try:
            args = read_cmdline(pid, proc_root)
        except (NoSuchProcess, PermissionError):
            error(f"pid {pid} does not exist or is not accessible.")
            failed = True
            continue
        typer.echo(shquote(args) if quote else " ".join(args))

    if failed:
        raise typer.Exit(code=1)


@app.command()
def getpenv(
    ctx: typer.Context,
    pid: int = typer.Argument(..., help="Pid to inspect."),
    name: str = typer.Argument(..., help="Environment variable name."),
) -> None:
    """Print the value of an environment variable as set for a pid.

    Exits 254 if the variable is not set for that process.
    """
    require_valid_pids([pid])
    try:
        env = read_environ(pid, _proc_root(ctx))
    except NoSuchProcess:
        error(f"cannot read environment of pid {pid} (not running?)")
        raise typer.Exit(code=1)
    except PermissionError as e:
        error(f"cannot read environment of pid {pid}: {e.strerror or e}")
        raise typer.Exit(code=1)

    if name not in env:
        log.info("%s not set for pid %d", name, pid)
        raise typer.Exit(code=ENV_NOT_SET_EXIT)
    typer.echo(env[name])


@app.command()
def getpmem(
    ctx: typer.Context,
    pids: List[int] = typer.Argument(..., help="Pid(s) to report on."),
    rss: bool = typer.Option(False, "-r", help="Accepted for compatibility; RSS is the only mode and is always reported."),
    kilobytes: bool = typer.Option(False, "-k", help="Output in kilobytes (default)."),
    megabytes: bool = typer.Option(False, "-m", help="Output in megabytes (1000 kB)."),
) -> None:
    """Print resident memory usage of one or more pids."""
    if kilobytes and megabytes:
        error("Multiple output units defined. Please pick just one.")
        raise typer.Exit(code=1)
    require_valid_pids(pids)
    proc_root = _proc_root(ctx)

    failed = False
    for pid in pids:
        try:
            mem = read_memory(pid, proc_root)
        except (NoSuchProcess, PermissionError):
            error(f"pid {pid} does not exist or is not accessible.")
            failed = True
            continue
        console.print(f"Memory info for pid: {mem.pid} ( {mem.name} )", markup=False, highlight=False)
        console.print(memory_table(mem, megabytes))

    if failed:
        raise typer.Exit(code=1)


@app.command()
def isachildof(
    ctx: typer.Context,
    child: int = typer.Argument(..., help="Pid that may be a descendant."),
    parent: int = typer.Argument(..., help="Potential ancestor pid."),
) -> None:
    """Exit 0 if CHILD is a child of PARENT at any depth, 1 if not, 2 if a pid vanished."""
    check_ancestry(ctx, child, parent)


@app.command()
def isaparentof(
    ctx: typer.Context,
    parent: int = typer.Argument(..., help="Potential ancestor pid."),
    child: int = typer.Argument(..., help="Pid that may be a descendant."),
) -> None:
    """Exit 0 if PARENT is a parent of CHILD at any depth, 1 if not, 2 if a pid vanished."""
    check_ancestry(ctx, child, parent)


# -----------------------------
# Standalone entry points
# -----------------------------


def _standalone(command: Callable[..., None]) -> Callable[[], None]:
    def run() -> None:
        setup_logging()
        typer.run(command)

    run.__name__ = f"{command.__name__}_main"
    return run


getcpids_main = _standalone(getcpids)
getppid_main = _standalone(getppid)
getpcmd_main = _standalone(getpcmd)
getpenv_main = _standalone(getpenv)
getpmem_main = _standalone(getpmem)
isachildof_main = _standalone(isachildof)
isaparentof_main = _standalone(isaparentof)
