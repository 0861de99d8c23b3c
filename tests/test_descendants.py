"""Tests for descendant collection and the ancestry walk."""

import pytest

from pidtools.descendants import collect_descendants, is_descendant
from pidtools.intmap import IntegerSet
from pidtools.proc import NoSuchProcess, ProcessVanished

SNAPSHOT = [10, 11, 12, 13]


def found(result):
    return sorted(result.values())


def test_direct_children_only(tree_parents):
    result = collect_descendants([10], SNAPSHOT, False, tree_parents)
    assert isinstance(result, IntegerSet)
    assert found(result) == [11, 12]


def test_transitive_closure(tree_parents):
    assert found(collect_descendants([10], SNAPSHOT, True, tree_parents)) == [11, 12, 13]


@pytest.mark.parametrize("recursive", [True, False])
def test_overlapping_roots_are_reported_once(tree_parents, recursive):
    result = collect_descendants([10, 11], SNAPSHOT, recursive, tree_parents)
    assert found(result) == [11, 12, 13]
    assert len(result.values()) == 3


def test_duplicate_roots_are_processed_once():
    calls = []

    def lookup(pid):
        calls.append(pid)
        return {11: 10, 12: 10}.get(pid, 1)

    result = collect_descendants([10, 10, 10], SNAPSHOT, True, lookup)
    assert found(result) == [11, 12]
    # one parent lookup per candidate for the whole run
    assert sorted(calls) == sorted(set(calls))


def test_vanished_candidate_is_skipped():
    mapping = {11: 10, 12: 10, 13: None}
    result = collect_descendants([10], SNAPSHOT, True, mapping.get)
    assert found(result) == [11, 12]


def test_no_matches():
    result = collect_descendants([99], SNAPSHOT, True, lambda pid: 1)
    assert len(result) == 0
    assert result.values() == []


def test_empty_snapshot_and_roots(tree_parents):
    assert len(collect_descendants([10], [], True, tree_parents)) == 0
    assert len(collect_descendants([], SNAPSHOT, True, tree_parents)) == 0


def test_init_is_never_its_own_child():
    snapshot = [1, 2, 3]
    mapping = {1: 1, 2: 1, 3: 2}
    assert found(collect_descendants([1], snapshot, True, mapping.get)) == [2, 3]
    assert found(collect_descendants([1], snapshot, False, mapping.get)) == [2]


def test_parent_cycle_terminates():
    # a corrupted tree: 10 -> 11 -> 12 -> 10
    mapping = {11: 10, 12: 11, 10: 12}
    result = collect_descendants([10], [10, 11, 12], True, mapping.get)
    assert found(result) == [10, 11, 12]


def test_snapshot_order_does_not_change_result(tree_parents):
    forward = collect_descendants([10], SNAPSHOT, True, tree_parents)
    backward = collect_descendants([10], list(reversed(SNAPSHOT)), True, tree_parents)
    assert found(forward) == found(backward)


def test_deep_chain_does_not_recurse():
    depth = 2000
    snapshot = list(range(2, depth + 2))
    mapping = {pid: pid - 1 for pid in snapshot}
    result = collect_descendants([1], snapshot, True, mapping.get, bucket_count=1000)
    assert len(result) == depth


def test_custom_bucket_count(tree_parents):
    result = collect_descendants([10], SNAPSHOT, True, tree_parents, bucket_count=1)
    assert result.bucket_count == 1
    assert found(result) == [11, 12, 13]


def test_runs_do_not_share_state():
    first = collect_descendants([10], SNAPSHOT, True, {11: 10}.get)
    second = collect_descendants([10], SNAPSHOT, True, {12: 10}.get)
    assert found(first) == [11]
    assert found(second) == [12]


# is_descendant

PARENTS = {13: 11, 11: 10, 10: 1, 12: 10, 1: 1}


def test_direct_parent():
    assert is_descendant(11, 10, PARENTS.get)


def test_grandparent():
    assert is_descendant(13, 10, PARENTS.get)
    assert is_descendant(13, 1, PARENTS.get)


def test_not_an_ancestor():
    assert not is_descendant(13, 12, PARENTS.get)
    assert not is_descendant(10, 13, PARENTS.get)


def test_missing_pid_raises():
    with pytest.raises(NoSuchProcess) as exc:
        is_descendant(999, 1, PARENTS.get)
    assert exc.value.pid == 999
    assert not isinstance(exc.value, ProcessVanished)


def test_vanished_ancestor_raises():
    parents = {13: 11}
    with pytest.raises(ProcessVanished) as exc:
        is_descendant(13, 10, parents.get)
    assert exc.value.pid == 11


def test_cycle_returns_false():
    parents = {5: 6, 6: 7, 7: 5}
    assert not is_descendant(5, 99, parents.get)


@pytest.mark.parametrize("recursive", [True, False])
def test_self_parented_pid_is_not_its_own_child(recursive):
    mapping = {7: 7, 8: 7}
    assert found(collect_descendants([7], [7, 8], recursive, mapping.get)) == [8]
