from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from welfare.db.filters import PER_ROW_CHECK
from welfare.db.session import get_db
from welfare.models.programs import Project, Scheme
from welfare.models.security import Region, User
from welfare.schemas.security import RegionOut, RoleAssignmentIn, UserOut
from welfare.scope import Scope
from welfare.scope.roles import region_level_for
from welfare.security.auth import principal_from_user
from welfare.security.context import AuthzContext
from welfare.security.dependencies import get_authz

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _user_query():
    return select(User).options(
        selectinload(User.regions),
        selectinload(User.projects),
        selectinload(User.schemes),
    )


@router.get("/users", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db), authz: AuthzContext = Depends(get_authz)) -> list[UserOut]:
    users = db.scalars(_user_query().order_by(User.id)).all()
    visible = [u for u in users if authz.authorizer.can_manage_user(authz.principal, principal_from_user(u))]
    return [UserOut.from_user(u) for u in visible]


@router.put("/users/{id}/role", response_model=UserOut)
def assign_role(
    id: int,
    body: RoleAssignmentIn,
    db: Session = Depends(get_db),
    authz: AuthzContext = Depends(get_authz),
) -> UserOut:
    user = db.scalars(_user_query().where(User.id == id)).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    authorizer = authz.authorizer
    if not authorizer.can_manage_user(authz.principal, principal_from_user(user)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot manage this user")

    level = body.scope_level or region_level_for(body.role)
    scope = Scope.of(body.region_ids, level=level, projects=body.project_ids, schemes=body.scheme_ids)
    if not authorizer.can_grant_scope(authz.principal, body.role, scope):
        logger.info(
            "Role grant denied actor=%s target=%s role=%s regions=%s",
            authz.user_id,
            user.id,
            body.role,
            sorted(scope.regions),
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Role or scope is outside what you can grant",
        )

    regions = list(db.scalars(select(Region).where(Region.id.in_(body.region_ids))).all()) if body.region_ids else []
    if len(regions) != len(set(body.region_ids)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown region id")
    if level is not None and any(r.level != level.value for r in regions):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"All regions must be at level {level.value!r}")

    projects = _load_all(db, Project, body.project_ids)
    schemes = _load_all(db, Scheme, body.scheme_ids)

    user.role = body.role.value
    user.scope_level = level.value if level is not None else None
    user.regions = regions
    user.projects = projects
    user.schemes = schemes
    db.commit()

    logger.info("Role assigned actor=%s target=%s role=%s", authz.user_id, user.id, body.role)
    user = db.scalars(_user_query().where(User.id == id)).one()
    return UserOut.from_user(user)


def _load_all(db: Session, model: type, ids: list[int]) -> list:
    if not ids:
        return []
    # The grant check above already limited ids to the actor's own scope.
    stmt = select(model).where(model.id.in_(ids)).execution_options(**{PER_ROW_CHECK: True})
    rows = list(db.scalars(stmt).all())
    if len(rows) != len(set(ids)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown {model.__name__.lower()} id")
    return rows


@router.get("/regions/{id}/children", response_model=list[RegionOut])
def region_children(id: int, db: Session = Depends(get_db), authz: AuthzContext = Depends(get_authz)) -> list[Region]:
    region = db.get(Region, id)
    if region is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Region not found")
    if not authz.authorizer.covers_region(authz.principal, id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    stmt = select(Region).where(Region.parent_id == id, Region.is_active.is_(True)).order_by(Region.name)
    return list(db.scalars(stmt).all())
