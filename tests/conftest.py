"""Shared test fixtures.

Identity maps live on entity classes, so entity classes are declared inside
fixtures: every test gets classes with empty identity maps.
"""

import pytest

from forkgraph import Entity, attribute, primary_identifier, reset_settings, secondary_identifier


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Settings read from a clean environment, reloaded for every test."""
    for name in ("FORKGRAPH_GENERATE_PRIMARY_IDENTIFIERS", "FORKGRAPH_STRICT_MERGE_LINEAGE", "FORKGRAPH_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def movie_classes():
    """Movie and Director entity classes referencing each other."""

    class Director(Entity):
        id = primary_identifier()
        name = attribute(default="")

    class Movie(Entity):
        id = primary_identifier()
        title = attribute(default="")
        tags = attribute(default_factory=list)
        specs = attribute(default_factory=dict)
        director = attribute(default=None)

    return Movie, Director


@pytest.fixture
def user_class():
    """User entity class with a primary and a secondary identifier."""

    class User(Entity):
        id = primary_identifier()
        email = secondary_identifier()
        name = attribute(default="")

    return User
