"""Shared fixtures: a fake /proc tree built under tmp_path."""

from pathlib import Path

import pytest


class FakeProc:
    def __init__(self, root: Path):
        self.root = root

    def add(self, pid, ppid, name="sh", cmdline=None, environ=None, status=None):
        d = self.root / str(pid)
        d.mkdir(parents=True)
        (d / "stat").write_text(f"{pid} ({name}) S {ppid} {pid} {pid} 0 -1 4194560\n")
        args = cmdline if cmdline is not None else [name]
        (d / "cmdline").write_bytes(b"".join(a.encode() + b"\x00" for a in args))
        env = environ or {}
        (d / "environ").write_bytes(b"".join(f"{k}={v}".encode() + b"\x00" for k, v in env.items()))
        lines = [f"Name:\t{name}", "State:\tS (sleeping)", f"Pid:\t{pid}", f"PPid:\t{ppid}"]
        lines += [f"{k}:\t{v}" for k, v in (status or {}).items()]
        (d / "status").write_text("\n".join(lines) + "\n")
        return d


@pytest.fixture
def fake_proc(tmp_path, monkeypatch):
    """A proc root holding the tree 1 -> 10 -> {11 -> 13, 12}, plus 20 under 1."""
    root = tmp_path / "proc"
    root.mkdir()
    (root / "self").mkdir()  # non-numeric entries are ignored
    (root / "meminfo").write_text("MemTotal: 1 kB\n")

    fp = FakeProc(root)
    fp.add(1, 0, name="init")
    fp.add(10, 1, name="bash", cmdline=["bash", "-l"], environ={"HOME": "/root", "PATH": "/bin"})
    fp.add(11, 10, name="make")
    fp.add(12, 10, name="vim")
    fp.add(13, 11, name="cc1", cmdline=["cc1", "-o", "a b.o"])
    fp.add(20, 1, name="cron")

    monkeypatch.setenv("PIDTOOLS_PROC_ROOT", str(root))
    return fp


@pytest.fixture
def tree_parents():
    """parent lookup for snapshot {10, 11, 12, 13}."""
    mapping = {11: 10, 12: 10, 13: 11}

    def lookup(pid):
        return mapping.get(pid, 1)

    return lookup
