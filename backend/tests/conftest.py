"""Shared fixtures: a per-test SQLite database holding the blog schema."""

import pytest

from blog import Article, Author, Base, Comment, Tag
from restforge import MiddlewareRegistry
from restforge.persistence import Database, DatabaseConfig


@pytest.fixture(autouse=True)
def clear_middleware_registry():
    """Clear middleware registry before and after each test."""
    MiddlewareRegistry.clear()
    yield
    MiddlewareRegistry.clear()


@pytest.fixture
def database(tmp_path):
    db = Database(DatabaseConfig(f"sqlite:///{tmp_path / 'test.db'}"))
    db.create_all(Base.metadata)
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    with database.session_factory() as session:
        yield session


@pytest.fixture
def seeded(session):
    """Three articles ("a", "b", "c") with 0, 1 and 3 comments."""
    alice = Author(id=1, name="Alice")
    python = Tag(id=1, name="python")
    sql = Tag(id=2, name="sql")
    session.add_all([
        alice,
        Article(id=1, title="a", status="published", views=10, author=alice, tags=[python]),
        Article(
            id=2,
            title="b",
            status="draft",
            views=20,
            comments=[Comment(body="first", approved=True)],
            tags=[python, sql],
        ),
        Article(
            id=3,
            title="c",
            status="published",
            views=30,
            comments=[
                Comment(body="one", approved=True),
                Comment(body="two", approved=False),
                Comment(body="three", approved=True),
            ],
        ),
    ])
    session.commit()
    session.expunge_all()
    return session
