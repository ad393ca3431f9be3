from __future__ import annotations

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from welfare.db.filters import attach_authz
from welfare.settings import get_settings


_db_url = get_settings().resolved_db_url()

engine = create_engine(
    _db_url,
    connect_args={"check_same_thread": False} if _db_url.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Main DB dependency.

    Route code queries normally (`db.scalars(select(Application))`) and only sees
    rows inside the principal's scope, once `enforce_security` has resolved it.
    """

    db = SessionLocal()
    try:
        authz = getattr(request.state, "authz", None)
        if authz is not None:
            attach_authz(db, authz)
        yield db
    finally:
        db.close()
