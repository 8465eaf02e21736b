"""Tests for OwnershipChain."""

import pytest

from forkgraph.core.chain import OwnershipChain
from forkgraph.core.types import UNSET


def test_reads_fall_through_to_parent():
    """Keys without a local override come from the parent."""
    base = {"a": 1, "b": 2}
    layer = OwnershipChain(parent=base)

    assert layer["a"] == 1
    assert dict(layer) == {"a": 1, "b": 2}
    assert not layer.owns("a")


def test_writes_stay_local():
    """Writing never touches the parent."""
    base = {"a": 1}
    layer = OwnershipChain(parent=base)

    layer["a"] = 10
    layer["c"] = 3

    assert base == {"a": 1}
    assert dict(layer) == {"a": 10, "c": 3}
    assert layer.owns("a")


def test_parent_changes_are_visible_until_overridden():
    """A layer reads the parent's current value, not a snapshot."""
    base = {"a": 1}
    layer = OwnershipChain(parent=base)

    base["a"] = 2
    assert layer["a"] == 2

    layer["a"] = 3
    base["a"] = 4
    assert layer["a"] == 3


def test_delete_parent_key_stores_marker():
    """Deleting a key visible through the parent hides it in this layer only."""
    base = {"a": 1, "b": 2}
    layer = OwnershipChain(parent=base)

    del layer["b"]

    assert "b" not in layer
    assert base == {"a": 1, "b": 2}
    assert list(layer.iter_own_items()) == [("b", UNSET)]
    assert len(layer) == 1
    with pytest.raises(KeyError):
        layer["b"]


def test_delete_local_only_key_removes_it():
    """Keys unknown to the parent are removed without a marker."""
    layer = OwnershipChain(parent={})
    layer["a"] = 1

    del layer["a"]

    assert list(layer.iter_own_items()) == []


def test_discard_own_re_exposes_parent():
    """Discarding a local value or marker lets reads delegate again."""
    base = {"a": 1, "b": 2}
    layer = OwnershipChain(parent=base)
    layer["a"] = 10
    del layer["b"]

    layer.discard_own("a")
    layer.discard_own("b")
    layer.discard_own("missing")

    assert layer["a"] == 1
    assert layer["b"] == 2
    assert list(layer.iter_own_items()) == []


def test_delete_missing_key_raises():
    """Deleting an absent key is a KeyError, as for dicts."""
    with pytest.raises(KeyError):
        del OwnershipChain(parent={"a": 1})["b"]


def test_get_own_ignores_parent():
    """get_own only consults the local layer."""
    layer = OwnershipChain(parent={"a": 1})

    assert layer.get_own("a") is None
    assert layer.get_own("a", "missing") == "missing"


def test_iter_overrides_nearest_first():
    """Overrides of nearer layers win over farther ones."""
    base = {"a": 1, "b": 2, "c": 3}
    middle = OwnershipChain(parent=base)
    middle["a"] = 10
    middle["b"] = 20
    leaf = middle.fork()
    leaf["a"] = 100
    del leaf["c"]

    assert dict(leaf.iter_overrides(until=base)) == {"a": 100, "b": 20, "c": UNSET}
    assert dict(leaf.iter_overrides(until=middle)) == {"a": 100, "c": UNSET}
    assert dict(leaf.iter_overrides()) == {"a": 100, "c": UNSET}


def test_fork_and_lineage():
    """Forks know their ancestors."""
    base = {"a": 1}
    layer = OwnershipChain(parent=base)
    forked = layer.fork()

    assert forked["a"] == 1
    assert forked.is_fork_of(layer)
    assert forked.is_fork_of(base)
    assert not layer.is_fork_of(forked)
    assert not forked.is_fork_of({"a": 1})
