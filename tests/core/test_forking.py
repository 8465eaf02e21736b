"""Tests for forking values and entities."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from forkgraph import fork, is_fork_of
from forkgraph.core.errors import TypeMismatchError
from forkgraph.core.forking import ForkedDict, ForkedList, ForkOptions


@pytest.mark.parametrize("value", [None, True, 42, 1.5, "text", b"bytes", Decimal("1.1"), date(2020, 1, 1)])
def test_scalars_are_returned_unchanged(value):
    """Scalars are immutable and need no fork."""
    assert fork(value) is value


def test_unsupported_value_raises():
    """Opaque objects cannot be forked."""
    with pytest.raises(TypeMismatchError):
        fork(object())


def test_fork_dict_reads_through():
    """Unwritten keys fall through to the origin's current value."""
    movie = {"title": "Inception", "year": 2010}
    forked = fork(movie)

    assert isinstance(forked, ForkedDict)
    assert forked["title"] == "Inception"

    movie["year"] = 2011
    assert forked["year"] == 2011, "Fork should see later origin changes for untouched keys"


def test_fork_dict_writes_stay_in_fork():
    """Writing and deleting on the fork leaves the origin untouched."""
    movie = {"title": "Inception", "year": 2010}
    forked = fork(movie)

    forked["title"] = "Inception 2"
    del forked["year"]

    assert movie == {"title": "Inception", "year": 2010}
    assert dict(forked) == {"title": "Inception 2"}


def test_fork_nested_dict_is_forked_on_read():
    """Nested containers read through the fork are forked once and kept."""
    movie = {"specs": {"duration": 120}}
    forked = fork(movie)

    specs = forked["specs"]
    specs["duration"] = 125

    assert forked["specs"] is specs
    assert forked["specs"]["duration"] == 125
    assert movie["specs"]["duration"] == 120
    assert is_fork_of(specs, movie["specs"])


def test_fork_list_is_lazy_until_written():
    """Length and scalar elements delegate until the first write."""
    tags = ["drama", "sci-fi"]
    forked = fork(tags)

    assert isinstance(forked, ForkedList)
    assert len(forked) == 2
    assert forked[0] == "drama"
    assert not forked.is_materialized()

    tags.append("thriller")
    assert len(forked) == 3

    forked.append("action")
    assert forked.is_materialized()
    assert forked == ["drama", "sci-fi", "thriller", "action"]
    assert tags == ["drama", "sci-fi", "thriller"]


def test_fork_list_materializes_on_nested_read():
    """Reading a container element forks every element."""
    actors = [{"name": "DiCaprio"}, {"name": "Page"}]
    forked = fork(actors)

    forked[1]["name"] = "Ellen Page"

    assert forked.is_materialized()
    assert actors[1]["name"] == "Page"
    assert forked[1]["name"] == "Ellen Page"
    assert is_fork_of(forked[0], actors[0])


def test_fork_tuple_forks_elements():
    """Tuples are forked element-wise into a new tuple."""
    value = ({"a": 1}, "b")
    forked = fork(value)

    assert isinstance(forked, tuple)
    assert forked[1] == "b"
    assert is_fork_of(forked[0], value[0])


def test_fork_of_fork_lineage():
    """Lineage spans every fork level."""
    origin = {"a": 1}
    child = fork(origin)
    grandchild = fork(child)

    assert is_fork_of(grandchild, child)
    assert is_fork_of(grandchild, origin)
    assert not is_fork_of(origin, child)
    assert not is_fork_of(child, {"a": 1})


def test_object_forker_takes_precedence():
    """A hook returning a value replaces the default fork."""
    marker = object()
    result = fork({"a": 1}, ForkOptions(object_forker=lambda value: marker))

    assert result is marker


def test_object_forker_none_falls_back():
    """A hook returning None falls back to the default behaviour."""
    forked = fork({"a": 1}, ForkOptions(object_forker=lambda value: None))

    assert isinstance(forked, ForkedDict)


def test_uuid_is_scalar():
    """UUIDs are values, not containers."""
    identifier = uuid4()

    assert fork({"id": identifier})["id"] is identifier


# Entities


def test_fork_entity_reads_through(movie_classes):
    """An entity fork reads the origin until it writes."""
    Movie, _ = movie_classes
    movie = Movie(title="Inception")
    forked = fork(movie)

    assert isinstance(forked, Movie)
    assert forked.is_fork_of(movie)
    assert forked.title == "Inception"

    movie.title = "Inception (2010)"
    assert forked.title == "Inception (2010)"

    forked.title = "Inception 2"
    assert movie.title == "Inception (2010)"


def test_fork_entity_nested_entity_is_forked(movie_classes):
    """Referenced entities are forked when read through the fork."""
    Movie, Director = movie_classes
    director = Director(name="Nolan")
    movie = Movie(title="Inception", director=director)

    forked = movie.fork()
    forked.director.name = "Christopher Nolan"

    assert forked.director is not director
    assert forked.director.is_fork_of(director)
    assert director.name == "Nolan"


def test_fork_entity_is_not_registered(movie_classes):
    """Same-class forks do not compete with their origin for identifiers."""
    Movie, _ = movie_classes
    movie = Movie(id="m1")
    forked = movie.fork()

    identity_map = Movie.get_identity_map()
    assert identity_map.get_component("m1") is movie
    assert not identity_map.has_component(forked)


def test_fork_entity_into_forked_class(movie_classes):
    """An entity forked into a forked class is remembered by that class's identity map."""
    Movie, _ = movie_classes
    ForkedMovie = Movie.fork_class()
    movie = Movie(id="m1", title="Inception")

    forked = movie.fork(ForkOptions(entity_class=ForkedMovie))

    assert type(forked) is ForkedMovie
    assert ForkedMovie.get_identity_map().get_component("m1") is forked
    assert movie.fork(ForkOptions(entity_class=ForkedMovie)) is forked


def test_fork_under_forked_context_resolves_related_classes(movie_classes):
    """Nested entities of a fork made in a forked class use related forked classes."""
    Movie, Director = movie_classes
    ForkedMovie = Movie.fork_class()
    director = Director(id="d1", name="Nolan")
    movie = Movie(id="m1", director=director)

    forked_movie = ForkedMovie.get_identity_map().get_component("m1")
    forked_director = forked_movie.director

    ForkedDirector = ForkedMovie.resolve_related_class(Director)
    assert type(forked_director) is ForkedDirector
    assert ForkedDirector.is_fork_of_class(Director)
    assert ForkedDirector.get_identity_map().get_component("d1") is forked_director
    assert movie.director is director


def test_fork_into_non_entity_class_raises(movie_classes):
    """The target of an entity fork must be an entity class."""
    Movie, _ = movie_classes

    with pytest.raises(TypeMismatchError):
        Movie().fork(ForkOptions(entity_class=dict))
