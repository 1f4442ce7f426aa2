import os

os.environ.setdefault("TESTING", "true")

import itertools
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from libris.app import app
from libris.core.db import Base, make_engine, get_session
from libris.core import models  # noqa: F401
from libris.core.auth import AuthContext, create_session_token, hash_password
from libris.core.catalog import Catalog
from libris.core.models import User

_isbns = itertools.count(1)


def book_fields(**overrides):
    """A complete, valid book payload; each call gets a fresh ISBN."""
    fields = {
        "author": "Le Guin, Ursula K.",
        "title": "The Dispossessed",
        "publication": "Harper & Row",
        "copyright_year": 1974,
        "physical_description": "341 p. ; 22 cm",
        "series": "Hainish Cycle",
        "isbn": f"978{next(_isbns):010d}",
        "subject": "Science fiction",
        "call_number": "PS3562 .E42",
        "accession_number": "ACC-0042",
        "location": "Main stacks",
        "total_copies": 1,
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session):
    counter = itertools.count(1)

    def _make_user(username=None, is_admin=False, password="Passw0rd!"):
        user = User(
            username=username or f"member{next(counter)}",
            password_hash=hash_password(password),
            firstname="Test",
            surname="Member",
            display_name="Test Member",
            is_admin=is_admin,
        )
        db_session.add(user)
        db_session.commit()
        return AuthContext(id=user.id, is_admin=is_admin)
    return _make_user


@pytest.fixture
def member(make_user):
    return make_user("reader")


@pytest.fixture
def admin(make_user):
    return make_user("librarian", is_admin=True)


@pytest.fixture
def make_book(db_session, admin):
    def _make_book(**overrides):
        return Catalog.add_book(db_session, admin, book_fields(**overrides))
    return _make_book


@pytest.fixture
def client(session_factory):
    def override_get_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_get_session
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(ctx: AuthContext) -> dict:
    return {"Authorization": f"Bearer {create_session_token(ctx.id, ctx.is_admin)}"}
