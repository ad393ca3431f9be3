from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from welfare.scope import ApplicationStatus


class _RegionRefsOut(BaseModel):
    state_id: int | None
    district_id: int | None
    area_id: int | None
    unit_id: int | None


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    status: str
    budget_total: float
    all_regions: bool


class SchemeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    category: str | None
    project_id: int | None
    max_amount: float | None
    status: str
    all_regions: bool


class BeneficiaryOut(_RegionRefsOut):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str
    is_verified: bool
    created_at: datetime


class StatusChangeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    from_status: str
    to_status: str
    comment: str | None
    changed_by_id: int
    changed_at: datetime


class ApplicationOut(_RegionRefsOut):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_number: str
    beneficiary_id: int
    scheme_id: int
    project_id: int | None
    status: str
    requested_amount: float
    approved_amount: float
    reviewed_at: datetime | None
    approved_at: datetime | None
    rejection_reason: str | None
    created_at: datetime


class ApplicationDetailOut(ApplicationOut):
    history: list[StatusChangeOut]


class ApplicationStatsOut(BaseModel):
    total: int
    by_status: dict[str, int]


class StatusUpdateIn(BaseModel):
    status: ApplicationStatus
    comment: str | None = None
    approved_amount: float | None = Field(default=None, ge=0)


class PaymentOut(_RegionRefsOut):
    model_config = ConfigDict(from_attributes=True)

    id: int
    payment_number: str
    application_id: int
    beneficiary_id: int
    project_id: int | None
    scheme_id: int
    amount: float
    status: str
    due_date: datetime | None
    paid_at: datetime | None


class DonorOut(_RegionRefsOut):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str | None
    phone: str | None
    donor_type: str
    total_donated: float
