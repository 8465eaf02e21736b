"""Tests for the selector algebra."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from forkgraph import Entity, attribute
from forkgraph.core.errors import InvalidSelectorError, SelectorPolicyError, TypeMismatchError
from forkgraph.core.selector import (
    clone_selector,
    get_from_selector,
    iterate_selector,
    merge_selectors,
    normalize_selector,
    pick_from_selector,
    remove_from_selector,
    selector_from_attributes,
    selector_from_names,
    selector_includes,
    selectors_equal,
    set_within_selector,
    traverse_selector,
)

names = st.sampled_from(["title", "director", "name", "tags"])

selectors = st.recursive(
    st.booleans(),
    lambda children: st.dictionaries(names, children, max_size=3),
    max_leaves=12,
)


def selects_nothing(selector) -> bool:
    """True if no path is selected."""
    if isinstance(selector, bool):
        return not selector
    return all(selects_nothing(sub_selector) for sub_selector in selector.values())


# Construction


def test_selector_from_names_maps_every_name_to_true():
    """Names become fully selected entries."""
    assert selector_from_names(["title", "year"]) == {"title": True, "year": True}


def test_selector_from_attributes_reads_names():
    """Attribute descriptors contribute their names."""

    class Book(Entity):
        title = attribute()
        year = attribute()

    book = Book(title="Dune", year=1965)

    assert selector_from_attributes(book.get_attributes()) == {"title": True, "year": True}


def test_normalize_none_is_false():
    """A missing selector selects nothing."""
    assert normalize_selector(None) is False


def test_normalize_rejects_other_values():
    """Only booleans and mappings are selectors."""
    with pytest.raises(InvalidSelectorError):
        normalize_selector(1)
    with pytest.raises(InvalidSelectorError):
        normalize_selector(["title"])


def test_normalize_error_is_a_type_error():
    """Malformed selectors can be handled as TypeError."""
    with pytest.raises(TypeError):
        normalize_selector("title")


def test_clone_selector_is_independent():
    """Cloning copies nested mappings."""
    selector = {"director": {"name": True}}
    cloned = clone_selector(selector)

    assert cloned == selector
    assert cloned["director"] is not selector["director"]


# Access


def test_get_from_boolean_selector_is_absorbing():
    """Boolean selectors decide for every name."""
    assert get_from_selector(True, "anything") is True
    assert get_from_selector(False, "anything") is False


def test_get_missing_name_is_false():
    """Unlisted names are not selected."""
    assert get_from_selector({"title": True}, "year") is False


def test_set_false_removes_name():
    """Setting False drops the key to keep selectors canonical."""
    selector = {"title": True, "year": True}
    updated = set_within_selector(selector, "year", False)

    assert updated == {"title": True}
    assert "year" not in updated
    assert selector == {"title": True, "year": True}, "Original selector must not change"


def test_set_on_boolean_selector_is_noop():
    """Boolean selectors are unchanged by set."""
    assert set_within_selector(True, "title", False) is True
    assert set_within_selector(False, "title", True) is False


@given(selector=selectors)
def test_set_then_get(selector):
    """PROPERTY: get(set(s, x, True), x) is True and get(set(s, x, False), x) is False."""
    if isinstance(selector, bool):
        return

    assert get_from_selector(set_within_selector(selector, "x", True), "x") is True

    removed = set_within_selector(selector, "x", False)
    assert get_from_selector(removed, "x") is False
    assert "x" not in dict(iterate_selector(removed))


def test_iterate_skips_false_entries():
    """Entries yield normalized sub-selectors in insertion order."""
    selector = {"title": True, "year": False, "director": {"name": True}, "tags": None}

    assert list(iterate_selector(selector)) == [("title", True), ("director", {"name": True})]


def test_iterate_boolean_selector_raises():
    """Boolean selectors have no entries."""
    with pytest.raises(TypeMismatchError):
        list(iterate_selector(True))


# Algebra


@given(selector=selectors)
def test_normalize_is_idempotent(selector):
    """PROPERTY: normalize(normalize(a)) == normalize(a)."""
    assert normalize_selector(normalize_selector(selector)) == normalize_selector(selector)


@given(a=selectors, b=selectors)
def test_union_dominates_operands(a, b):
    """PROPERTY: add(a, b) includes both a and b."""
    union = merge_selectors(a, b)

    assert selector_includes(union, a), f"{union} should include {a}"
    assert selector_includes(union, b), f"{union} should include {b}"


@given(a=selectors)
def test_false_is_union_identity(a):
    """PROPERTY: a and add(a, False) are equal."""
    assert selectors_equal(a, merge_selectors(a, False))


@given(a=selectors)
def test_union_is_idempotent(a):
    """PROPERTY: add(a, a) equals a."""
    assert selectors_equal(merge_selectors(a, a), a)


@given(a=selectors)
def test_remove_self_is_false(a):
    """PROPERTY: remove(a, a) is False."""
    assert remove_from_selector(a, a) is False


@given(a=selectors, b=selectors)
def test_difference_is_included_in_minuend(a, b):
    """PROPERTY: remove(a, b) never selects more than a."""
    try:
        difference = remove_from_selector(a, b)
    except SelectorPolicyError:
        return

    assert selector_includes(a, difference)


def test_includes_rules():
    """True includes everything, False only False."""
    assert selector_includes(True, {"title": True})
    assert selector_includes(False, False)
    assert not selector_includes(False, {"title": True})
    assert not selector_includes({"title": True}, True)
    assert selector_includes({"director": True}, {"director": {"name": True}})
    assert not selector_includes({"director": {"name": True}}, {"director": True})


def test_union_of_nested_selectors():
    """Union merges names recursively."""
    union = merge_selectors({"director": {"name": True}}, {"director": {"age": True}, "title": True})

    assert union == {"director": {"name": True, "age": True}, "title": True}


def test_remove_nested_selector():
    """Difference removes nested paths only."""
    selector = {"title": True, "director": {"name": True, "age": True}}

    assert remove_from_selector(selector, {"director": {"age": True}}) == {
        "title": True,
        "director": {"name": True},
    }


def test_remove_object_from_true_is_a_policy_error():
    """The complement of a structured selector in True is not representable."""
    with pytest.raises(SelectorPolicyError):
        remove_from_selector(True, {"title": True})


def test_remove_edge_cases():
    """False operands short-circuit."""
    assert remove_from_selector({"title": True}, False) == {"title": True}
    assert remove_from_selector(False, {"title": True}) is False
    assert remove_from_selector({"title": True}, True) is False


# Pick


def test_pick_mapping():
    """Mappings are projected name by name."""
    assert pick_from_selector({"a": 1, "b": 2}, selector_from_names(["a"])) == {"a": 1}


def test_pick_sequence_applies_selector_to_every_element():
    """Lists stay lists, tuples stay tuples."""
    assert pick_from_selector([{"a": 1, "b": 2}], selector_from_names(["a"])) == [{"a": 1}]
    assert pick_from_selector(({"a": 1, "b": 2},), {"b": True}) == ({"b": 2},)


def test_pick_true_returns_value_itself():
    """A True selector returns the value by reference."""
    value = {"a": [1, 2]}

    assert pick_from_selector(value, True) is value


def test_pick_none_value():
    """None projects to None whatever the selector."""
    assert pick_from_selector(None, {"a": True}) is None


def test_pick_include_attribute_names_bypass_selector():
    """Included names are copied verbatim from mappings."""
    value = {"__type": "Movie", "title": "Inception", "year": 2010}

    assert pick_from_selector(value, {"title": True}, include_attribute_names=["__type"]) == {
        "__type": "Movie",
        "title": "Inception",
    }


def test_pick_nested_and_missing_keys():
    """Missing keys are omitted, nested selectors recurse."""
    value = {"director": {"name": "Nolan", "age": 53}, "year": 2010}

    assert pick_from_selector(value, {"director": {"name": True}, "title": True}) == {
        "director": {"name": "Nolan"}
    }


def test_pick_scalar_with_object_selector_raises():
    """Opaque values cannot be projected."""
    with pytest.raises(TypeMismatchError):
        pick_from_selector({"title": "Inception"}, {"title": {"length": True}})


def test_pick_false_selector_raises():
    """Nothing can be projected with a False selector."""
    with pytest.raises(SelectorPolicyError):
        pick_from_selector({"a": 1}, False)


def test_pick_entity_reads_set_attributes(movie_classes):
    """Entities project to plain dicts of their set attributes."""
    Movie, Director = movie_classes
    movie = Movie(id="m1", title="Inception", director=Director(id="d1", name="Nolan"))

    assert pick_from_selector(movie, {"title": True, "director": {"name": True}}) == {
        "title": "Inception",
        "director": {"name": "Nolan"},
    }


# Traverse


def test_traverse_visits_leaves_depth_first():
    """Leaves are reported with their name and container."""
    value = {"title": "Inception", "director": {"name": "Nolan"}}
    visited = []

    traverse_selector(
        value,
        {"title": True, "director": {"name": True}},
        lambda leaf, name, container: visited.append((leaf, name, container)),
    )

    assert visited == [
        ("Inception", "title", value),
        ("Nolan", "name", value["director"]),
    ]


def test_traverse_sequence_elements_report_sequence_name():
    """Elements do not report their index as a name."""
    value = {"actors": [{"name": "DiCaprio"}, {"name": "Page"}]}
    visited = []

    traverse_selector(
        value, {"actors": {"name": True}}, lambda leaf, name, container: visited.append((leaf, name))
    )

    assert visited == [("DiCaprio", "name"), ("Page", "name")]


def test_traverse_missing_value_is_a_leaf():
    """A missing field is visited as None."""
    visited = []

    traverse_selector({}, {"director": {"name": True}}, lambda leaf, name, _: visited.append((leaf, name)))

    assert visited == [(None, "director")]


def test_traverse_false_visits_nothing():
    """A False selector short-circuits."""
    visited = []

    traverse_selector({"a": 1}, False, lambda *args: visited.append(args))

    assert visited == []


def test_traverse_include_subtrees():
    """Nested mappings are reported before their leaves, the root is not."""
    value = {"director": {"name": "Nolan"}}
    visited = []

    traverse_selector(
        value,
        {"director": {"name": True}},
        lambda leaf, name, _: visited.append((leaf, name)),
        include_subtrees=True,
        include_leaves=False,
    )

    assert visited == [({"name": "Nolan"}, "director")]


def test_traverse_scalar_with_object_selector_raises():
    """Opaque values cannot be traversed with a structured selector."""
    with pytest.raises(TypeMismatchError):
        traverse_selector({"title": "Inception"}, {"title": {"length": True}}, lambda *args: None)
