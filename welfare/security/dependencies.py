from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from welfare.db.filters import attach_authz
from welfare.db.regions import SqlRegionHierarchy
from welfare.db.session import get_db
from welfare.models.security import User
from welfare.scope import ScopeAuthorizer
from welfare.security.auth import extract_user_id, load_user, principal_from_user
from welfare.security.config import SecurityConfig
from welfare.security.context import AuthzContext

logger = logging.getLogger(__name__)


def get_security_config(request: Request) -> SecurityConfig:
    config = getattr(request.app.state, "security_config", None)
    if config is None:
        raise RuntimeError("Security config not loaded. Did app startup run?")
    return config


def get_current_user(request: Request) -> User:
    user = getattr(request.state, "user", None)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user


def get_authz(request: Request) -> AuthzContext:
    authz = getattr(request.state, "authz", None)
    if authz is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return authz


def enforce_security(
    request: Request,
    config: SecurityConfig = Depends(get_security_config),
    db: Session = Depends(get_db, use_cache=False),
) -> None:
    """
    Global security dependency.

    1. Match the route rule from config (plus `@require_roles` metadata on the endpoint).
    2. Load the user and check required roles.
    3. Resolve the principal's scope once and attach an AuthzContext to request.state;
       `get_db` copies it onto every session the route opens.
    """

    path = request.url.path
    method = request.method.upper()

    rule = config.match(path, method)

    endpoint = request.scope.get("endpoint")
    decorator_roles = set(getattr(endpoint, "__security_required_roles__", set())) if endpoint else set()

    auth_required = rule.auth_required or bool(decorator_roles)
    if not auth_required:
        return

    user_id = extract_user_id(request, config)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user id")

    user = load_user(db, user_id)
    request.state.user = user

    required_roles = set(rule.required_roles) | decorator_roles
    if required_roles and user.role not in required_roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient role. Required one of: {sorted(required_roles)}",
        )

    principal = principal_from_user(user)
    authorizer = ScopeAuthorizer(config.policy, hierarchy=SqlRegionHierarchy(db))
    scope = authorizer.resolve(principal)
    logger.debug("Resolved scope user_id=%s role=%s scope=%s", user.id, user.role, scope)

    authz = AuthzContext(
        user_id=user.id,
        principal=principal,
        authorizer=authorizer,
        scope=scope,
    )
    request.state.authz = authz
    # FastAPI caches dependency results, so a route may be handed this same session.
    attach_authz(db, authz)
