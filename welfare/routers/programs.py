from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from welfare.db.session import get_db
from welfare.models.programs import Project, Scheme
from welfare.schemas.programs import ProjectOut, SchemeOut

router = APIRouter(tags=["programs"])


@router.get("/projects", response_model=list[ProjectOut])
def list_projects(status: str | None = None, db: Session = Depends(get_db)) -> list[Project]:
    stmt = select(Project)
    if status:
        stmt = stmt.where(Project.status == status)
    return list(db.scalars(stmt.order_by(Project.id)).all())


@router.get("/schemes", response_model=list[SchemeOut])
def list_schemes(
    status: str | None = None,
    project_id: int | None = None,
    db: Session = Depends(get_db),
) -> list[Scheme]:
    stmt = select(Scheme)
    if status:
        stmt = stmt.where(Scheme.status == status)
    if project_id is not None:
        stmt = stmt.where(Scheme.project_id == project_id)
    return list(db.scalars(stmt.order_by(Scheme.id)).all())
