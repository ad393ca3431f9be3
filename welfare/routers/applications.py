from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from welfare.db.applications import InvalidTransition, application_stats, change_status
from welfare.db.session import get_db
from welfare.models.programs import Application
from welfare.schemas.programs import (
    ApplicationDetailOut,
    ApplicationOut,
    ApplicationStatsOut,
    StatusUpdateIn,
)
from welfare.scope import Action, Role
from welfare.security.access import get_authorized
from welfare.security.context import AuthzContext
from welfare.security.decorators import require_roles
from welfare.security.dependencies import get_authz

router = APIRouter(prefix="/applications", tags=["applications"])


@router.get("", response_model=list[ApplicationOut])
def list_applications(
    status_: str | None = Query(None, alias="status"),
    scheme_id: int | None = None,
    search: str | None = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> list[Application]:
    # Caller filters below; the regional scope is ANDed in by welfare/db/filters.py.
    stmt = select(Application)
    if status_:
        stmt = stmt.where(Application.status == status_)
    if scheme_id is not None:
        stmt = stmt.where(Application.scheme_id == scheme_id)
    if search:
        stmt = stmt.where(Application.application_number.ilike(f"%{search}%"))
    stmt = stmt.order_by(Application.created_at.desc(), Application.id.desc()).limit(limit).offset(offset)
    return list(db.scalars(stmt).all())


@router.get("/stats", response_model=ApplicationStatsOut)
def get_application_stats(db: Session = Depends(get_db)) -> ApplicationStatsOut:
    by_status = application_stats(db)
    return ApplicationStatsOut(total=sum(by_status.values()), by_status=by_status)


@router.get("/{id}", response_model=ApplicationDetailOut)
def get_application(id: int, db: Session = Depends(get_db), authz: AuthzContext = Depends(get_authz)) -> Application:
    return get_authorized(db, Application, id, authz)


@router.put("/{id}/status", response_model=ApplicationOut)
@require_roles([Role.SUPER_ADMIN, Role.STATE_ADMIN, Role.DISTRICT_ADMIN, Role.AREA_ADMIN])
def update_application_status(
    id: int,
    body: StatusUpdateIn,
    db: Session = Depends(get_db),
    authz: AuthzContext = Depends(get_authz),
) -> Application:
    application = get_authorized(db, Application, id, authz, Action.APPROVE)
    try:
        return change_status(
            db,
            application,
            body.status,
            changed_by_id=authz.user_id,
            comment=body.comment,
            approved_amount=body.approved_amount,
        )
    except InvalidTransition as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
