from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from welfare.db.session import get_db
from welfare.models.programs import Beneficiary
from welfare.schemas.programs import BeneficiaryOut
from welfare.security.access import get_authorized
from welfare.security.context import AuthzContext
from welfare.security.dependencies import get_authz

router = APIRouter(prefix="/beneficiaries", tags=["beneficiaries"])


@router.get("", response_model=list[BeneficiaryOut])
def list_beneficiaries(
    search: str | None = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> list[Beneficiary]:
    # Regional scope is applied transparently via welfare/db/filters.py.
    stmt = select(Beneficiary)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(Beneficiary.name.ilike(pattern), Beneficiary.phone.ilike(pattern)))
    stmt = stmt.order_by(Beneficiary.id).limit(limit).offset(offset)
    return list(db.scalars(stmt).all())


@router.get("/{id}", response_model=BeneficiaryOut)
def get_beneficiary(id: int, db: Session = Depends(get_db), authz: AuthzContext = Depends(get_authz)) -> Beneficiary:
    return get_authorized(db, Beneficiary, id, authz)
