from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from welfare.models.security import User
from welfare.scope import Principal, Scope
from welfare.security.config import SecurityConfig

logger = logging.getLogger(__name__)


def extract_user_id(request: Request, config: SecurityConfig) -> int | None:
    """
    Demo auth: the bearer token *is* the user id.

    - Input: `Authorization: Bearer <user_id>`
    - Token verification (OTP/JWT) happens upstream and is not part of this service.
    """

    header_name = config.auth.authorization_header
    bearer_prefix = config.auth.bearer_prefix

    raw = request.headers.get(header_name)
    if not raw:
        logger.info("Missing Authorization header (auth required) path=%s method=%s", request.url.path, request.method)
        return None

    prefix = f"{bearer_prefix} "
    if not raw.startswith(prefix):
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header_name}. Expected '{bearer_prefix} <token>'.",
        )

    token = raw[len(prefix) :].strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header_name}. Missing token after '{bearer_prefix}'.",
        )

    try:
        return int(token)
    except ValueError as exc:
        logger.warning("Bearer token is not a user id path=%s method=%s", request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid bearer token (expected integer user id).",
        ) from exc


def load_user(db: Session, user_id: int) -> User:
    user = db.execute(
        select(User)
        .where(User.id == user_id)
        .options(
            selectinload(User.regions),
            selectinload(User.projects),
            selectinload(User.schemes),
        )
    ).scalar_one_or_none()

    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or inactive user")

    return user


def principal_from_user(user: User) -> Principal:
    """
    Map a user row to the authorizer's Principal.

    An unknown role string maps to `role=None`, which the authorizer treats as
    "no access" rather than an error.
    """

    scope = Scope.of(
        (r.id for r in user.regions),
        level=user.scope_level,
        projects=(p.id for p in user.projects),
        schemes=(s.id for s in user.schemes),
    )
    principal = Principal.of(user.role, scope, user_id=user.id)
    if principal.role is None:
        logger.warning("User has unknown role user_id=%s role=%r", user.id, user.role)
    return principal
