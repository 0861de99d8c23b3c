"""Descendant discovery over a snapshot of live pids.

The only thing known about the process tree is "who is the parent of X",
so children of a pid are found by asking that question of every candidate
in the snapshot.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence

from .intmap import MATCH_BUCKETS, IntegerSet
from .proc import NoSuchProcess, ProcessVanished

log = logging.getLogger(__name__)

ParentLookup = Callable[[int], "int | None"]

INIT_PID = 1


def _memoized(parent_of: ParentLookup) -> ParentLookup:
    # One lookup per candidate per run; nothing outlives the run.
    cache: dict[int, int | None] = {}

    def lookup(pid: int) -> int | None:
        if pid not in cache:
            cache[pid] = parent_of(pid)
            if cache[pid] is None:
                log.debug("pid %d vanished during scan, skipping", pid)
        return cache[pid]

    return lookup


def _unique(roots: Iterable[int]) -> list[int]:
    seen = IntegerSet(MATCH_BUCKETS)
    out: list[int] = []
    for r in roots:
        if seen.add(r):
            out.append(r)
    return out


def _is_child(cand: int, parent: int, lookup: ParentLookup) -> bool:
    # a self-parented pid would be a one-node cycle (pid 1 reports parent 1); never a child
    return cand != parent and lookup(cand) == parent


def _collect_children(roots: list[int], snapshot: Sequence[int], lookup: ParentLookup, matched: IntegerSet) -> None:
    for cand in snapshot:
        if matched.contains(cand):
            continue
        for root in roots:
            if _is_child(cand, root, lookup):
                matched.add(cand)
                break


def _collect_tree(roots: list[int], snapshot: Sequence[int], lookup: ParentLookup, matched: IntegerSet) -> None:
    # Depth-first, in the same order a recursive scan would visit: on a match
    # the current scan is suspended at the next candidate and the match is
    # scanned as a new root. Each match consumes one snapshot entry, so the
    # number of scans is bounded by the snapshot size.
    for root in roots:
        stack: list[tuple[int, int]] = [(root, 0)]
        while stack:
            parent, start = stack.pop()
            for idx in range(start, len(snapshot)):
                cand = snapshot[idx]
                if matched.contains(cand):
                    continue
                if _is_child(cand, parent, lookup):
                    matched.add(cand)
                    stack.append((parent, idx + 1))
                    stack.append((cand, 0))
                    break


def collect_descendants(
    roots: Iterable[int],
    snapshot: Sequence[int],
    recursive: bool,
    parent_of: ParentLookup,
    *,
    bucket_count: int = MATCH_BUCKETS,
) -> IntegerSet:
    """Collect the children (or, if recursive, all descendants) of roots.

    Every pid is reported at most once, however many roots lead to it.
    Candidates whose parent cannot be looked up (the process exited during
    the scan) are treated as non-matches.

    The returned set is in bucket order; sort its values() before display.
    """
    matched = IntegerSet(bucket_count)
    unique_roots = _unique(roots)
    lookup = _memoized(parent_of)

    if recursive:
        _collect_tree(unique_roots, snapshot, lookup, matched)
    else:
        _collect_children(unique_roots, snapshot, lookup, matched)

    log.debug(
        "collected %d %s of %s",
        len(matched),
        "descendants" if recursive else "children",
        unique_roots,
    )
    return matched


def is_descendant(pid: int, ancestor: int, parent_of: ParentLookup) -> bool:
    """True if ancestor appears anywhere on pid's parent chain.

    Raises NoSuchProcess if pid does not exist, ProcessVanished if a process
    further up the chain exits while it is being walked.
    """
    cur = parent_of(pid)
    if cur is None:
        raise NoSuchProcess(pid)
    if cur == ancestor:
        return True

    visited = IntegerSet(MATCH_BUCKETS)
    visited.add(pid)
    while cur != INIT_PID:
        if not visited.add(cur):
            log.warning("parent cycle at pid %d while walking up from %d", cur, pid)
            return False
        prev = cur
        cur = parent_of(cur)
        if cur is None:
            raise ProcessVanished(prev)
        if cur == ancestor:
            return True
    return False
