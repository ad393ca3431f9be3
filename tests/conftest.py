"""
Pytest fixtures for the test suite.

Data-layer tests use an in-memory SQLite engine and a connection-level transaction
that is rolled back after each test, so tests do not affect each other.
"""
from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from welfare.db.filters import attach_authz
from welfare.models import programs as _programs  # noqa: F401  (configure all mappers)
from welfare.models import security as _security  # noqa: F401


TEST_DB_URL = "sqlite:///:memory:"


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    from welfare.db.base import Base
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def connection(tables):
    connection = tables.connect()
    transaction = connection.begin()
    yield connection
    transaction.rollback()
    connection.close()


@pytest.fixture
def session_factory(connection):
    """Sessions bound to the test connection; all of them see the same data."""
    return sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )


@pytest.fixture
def db_session(session_factory):
    """
    Provide a Session bound to the test DB; rolled back after each test.
    """
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded(db_session):
    """The demo hierarchy from welfare.db.init_db, loaded into the test DB."""
    from welfare.db.init_db import seed_demo_data

    seed_demo_data(db_session)
    return db_session


@pytest.fixture
def authz_for():
    """Build the AuthzContext enforce_security would attach for a user."""
    from welfare.db.regions import SqlRegionHierarchy
    from welfare.scope import ScopeAuthorizer
    from welfare.security.auth import load_user, principal_from_user
    from welfare.security.context import AuthzContext

    def build(db, user_id, policy=None):
        principal = principal_from_user(load_user(db, user_id))
        authorizer = ScopeAuthorizer(policy, hierarchy=SqlRegionHierarchy(db))
        return AuthzContext(
            user_id=user_id,
            principal=principal,
            authorizer=authorizer,
            scope=authorizer.resolve(principal),
        )

    return build


@pytest.fixture
def scoped_session(seeded, session_factory, authz_for):
    """Open a fresh session that only sees what `user_id` may read."""
    opened = []

    def open_as(user_id, policy=None):
        session = session_factory()
        attach_authz(session, authz_for(seeded, user_id, policy))
        opened.append(session)
        return session

    yield open_as
    for session in opened:
        session.close()
