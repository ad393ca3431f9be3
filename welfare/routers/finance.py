from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from welfare.db.session import get_db
from welfare.models.programs import Donor, Payment
from welfare.schemas.programs import DonorOut, PaymentOut

router = APIRouter(tags=["finance"])


@router.get("/payments", response_model=list[PaymentOut])
def list_payments(status: str | None = None, scheme_id: int | None = None, db: Session = Depends(get_db)) -> list[Payment]:
    stmt = select(Payment)
    if status:
        stmt = stmt.where(Payment.status == status)
    if scheme_id is not None:
        stmt = stmt.where(Payment.scheme_id == scheme_id)
    return list(db.scalars(stmt.order_by(Payment.id)).all())


@router.get("/donors", response_model=list[DonorOut])
def list_donors(db: Session = Depends(get_db)) -> list[Donor]:
    return list(db.scalars(select(Donor).order_by(Donor.id)).all())
