from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

# Field index of the parent pid in /proc/<pid>/stat, counted after the "(comm)" field.
STAT_PPID_FIELD = 1


class NoSuchProcess(LookupError):
    """The pid does not exist (or is no longer readable)."""

    def __init__(self, pid: int, msg: str | None = None) -> None:
        super().__init__(msg or f"no such pid: {pid}")
        self.pid = pid


class ProcessVanished(NoSuchProcess):
    """A process disappeared while it was being inspected."""

    def __init__(self, pid: int) -> None:
        super().__init__(pid, f"pid {pid} disappeared while checking")


@dataclass
class ProcMemory:
    pid: int
    name: str
    rss_anon: int | None = None
    rss_file: int | None = None
    rss_shmem: int | None = None
    vm_rss: int | None = None


def default_proc_root() -> Path:
    """Root of the proc filesystem; overridable for tests and containers."""
    env = os.environ.get("PIDTOOLS_PROC_ROOT")
    if env:
        return Path(env)
    return Path("/proc")


def _pid_dir(pid: int, proc_root: Path | None) -> Path:
    return (proc_root or default_proc_root()) / str(pid)


def list_live_pids(proc_root: Path | None = None) -> list[int]:
    """Snapshot of every pid visible under the proc root, ascending."""
    root = proc_root or default_proc_root()
    pids: list[int] = []
    for d in os.listdir(root):
        if not d.isdigit():
            continue
        pids.append(int(d))
    pids.sort()
    log.debug("snapshot of %s: %d live pids", root, len(pids))
    return pids


def parent_of(pid: int, proc_root: Path | None = None) -> int | None:
    """Parent pid of pid, or None if pid does not exist.

    A process without a parent (including pid 1) is reported as a child of 1.
    """
    try:
        stat = (_pid_dir(pid, proc_root) / "stat").read_text(errors="replace")
    except OSError:
        return None
    # comm may contain spaces and parens; the fields we want follow the last ')'
    _comm, sep, rest = stat.rpartition(")")
    parts = rest.split()
    if not sep or len(parts) <= STAT_PPID_FIELD:
        log.debug("unparseable stat for pid %d: %r", pid, stat[:80])
        return None
    try:
        ppid = int(parts[STAT_PPID_FIELD])
    except ValueError:
        return None
    return ppid or 1


def pid_exists(pid: int, proc_root: Path | None = None) -> bool:
    return _pid_dir(pid, proc_root).is_dir()


def _read_bytes(pid: int, name: str, proc_root: Path | None) -> bytes:
    try:
        return (_pid_dir(pid, proc_root) / name).read_bytes()
    except (FileNotFoundError, ProcessLookupError, NotADirectoryError) as e:
        raise NoSuchProcess(pid) from e


def _split_nul(raw: bytes) -> list[str]:
    if raw.endswith(b"\x00"):
        raw = raw[:-1]
    if not raw:
        return []
    return [os.fsdecode(part) for part in raw.split(b"\x00")]


def read_cmdline(pid: int, proc_root: Path | None = None) -> list[str]:
    """Command line arguments of pid. Kernel threads give an empty list."""
    return _split_nul(_read_bytes(pid, "cmdline", proc_root))


def read_environ(pid: int, proc_root: Path | None = None) -> dict[str, str]:
    """Environment of pid as a dict. PermissionError propagates."""
    env: dict[str, str] = {}
    for entry in _split_nul(_read_bytes(pid, "environ", proc_root)):
        name, sep, value = entry.partition("=")
        if not sep or name in env:
            continue
        env[name] = value
    return env


def read_status(pid: int, proc_root: Path | None = None) -> dict[str, str]:
    raw = _read_bytes(pid, "status", proc_root).decode(errors="replace")
    out: dict[str, str] = {}
    for line in raw.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            out[key] = value.strip()
    return out


def _kb(status: dict[str, str], key: str) -> int | None:
    # "1704 kB"
    value = status.get(key)
    if not value:
        return None
    try:
        return int(value.split()[0])
    except (ValueError, IndexError):
        return None


def read_memory(pid: int, proc_root: Path | None = None) -> ProcMemory:
    status = read_status(pid, proc_root)
    return ProcMemory(
        pid=pid,
        name=status.get("Name") or "UNKNOWN",
        rss_anon=_kb(status, "RssAnon"),
        rss_file=_kb(status, "RssFile"),
        rss_shmem=_kb(status, "RssShmem"),
        vm_rss=_kb(status, "VmRSS"),
    )
