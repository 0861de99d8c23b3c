from __future__ import annotations

import shlex
from typing import Sequence


def shquote(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def valid_pid(pid: int) -> bool:
    """pids are strictly positive; 0 and negatives are never a real process."""
    return pid > 0


def invalid_pids(pids: Sequence[int]) -> list[int]:
    return [p for p in pids if not valid_pid(p)]
