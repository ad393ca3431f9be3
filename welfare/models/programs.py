from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from welfare.db.base import Base
from welfare.models.security import Region
from welfare.scope import ApplicationStatus, ResourceKind

# Every scoped model declares:
#   __scope_kind__    which ResourceKind it is
#   __scope_fields__  Resource field -> mapped attribute
# welfare.db.scoping uses both to build Resources and SQL criteria from one table.


project_regions = Table(
    "project_regions",
    Base.metadata,
    Column("project_id", ForeignKey("projects.id"), primary_key=True),
    Column("region_id", ForeignKey("regions.id"), primary_key=True),
)

scheme_regions = Table(
    "scheme_regions",
    Base.metadata,
    Column("scheme_id", ForeignKey("schemes.id"), primary_key=True),
    Column("region_id", ForeignKey("regions.id"), primary_key=True),
)


class _RegionRefs:
    """Single region reference per hierarchy level (validated at creation time)."""

    state_id: Mapped[int | None] = mapped_column(ForeignKey("regions.id"), nullable=True, index=True)
    district_id: Mapped[int | None] = mapped_column(ForeignKey("regions.id"), nullable=True, index=True)
    area_id: Mapped[int | None] = mapped_column(ForeignKey("regions.id"), nullable=True, index=True)
    unit_id: Mapped[int | None] = mapped_column(ForeignKey("regions.id"), nullable=True, index=True)


_REGION_FIELDS = {
    "state": "state_id",
    "district": "district_id",
    "area": "area_id",
    "unit": "unit_id",
}


class Project(Base):
    __tablename__ = "projects"
    __scope_kind__ = ResourceKind.PROJECT
    __scope_fields__ = {
        "project": "id",
        "target_regions": "target_regions",
        "open_to_all_regions": "all_regions",
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    budget_total: Mapped[float] = mapped_column(Numeric(14, 2), default=0, nullable=False)

    # Explicit "applies to every region" marker; an empty target list alone is not enough.
    all_regions: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    target_regions: Mapped[list[Region]] = relationship(secondary=project_regions)
    schemes: Mapped[list["Scheme"]] = relationship(back_populates="project")


class Scheme(Base):
    __tablename__ = "schemes"
    __scope_kind__ = ResourceKind.SCHEME
    __scope_fields__ = {
        "scheme": "id",
        "project": "project_id",
        "target_regions": "target_regions",
        "open_to_all_regions": "all_regions",
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    project_id: Mapped[int | None] = mapped_column(ForeignKey("projects.id"), nullable=True, index=True)
    max_amount: Mapped[float | None] = mapped_column(Numeric(12, 2), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    all_regions: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    project: Mapped[Project | None] = relationship(back_populates="schemes")
    target_regions: Mapped[list[Region]] = relationship(secondary=scheme_regions)


class Beneficiary(_RegionRefs, Base):
    __tablename__ = "beneficiaries"
    __scope_kind__ = ResourceKind.BENEFICIARY
    __scope_fields__ = {**_REGION_FIELDS, "owner": "user_id"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(15), unique=True, nullable=False)
    # Self-service login account, when the beneficiary has one.
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Application(_RegionRefs, Base):
    __tablename__ = "applications"
    __scope_kind__ = ResourceKind.APPLICATION
    __scope_fields__ = {**_REGION_FIELDS, "project": "project_id", "scheme": "scheme_id", "owner": "owner_id"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    application_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    beneficiary_id: Mapped[int] = mapped_column(ForeignKey("beneficiaries.id"), nullable=False, index=True)
    scheme_id: Mapped[int] = mapped_column(ForeignKey("schemes.id"), nullable=False, index=True)
    project_id: Mapped[int | None] = mapped_column(ForeignKey("projects.id"), nullable=True, index=True)

    # Denormalized from the beneficiary for self-service filtering.
    owner_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)

    status: Mapped[str] = mapped_column(String(20), default=ApplicationStatus.PENDING.value, nullable=False, index=True)
    requested_amount: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    approved_amount: Mapped[float] = mapped_column(Numeric(12, 2), default=0, nullable=False)

    reviewed_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    approved_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    rejected_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    beneficiary: Mapped[Beneficiary] = relationship()
    scheme: Mapped[Scheme] = relationship()
    history: Mapped[list["ApplicationStatusChange"]] = relationship(
        back_populates="application",
        order_by="ApplicationStatusChange.id",
    )


class ApplicationStatusChange(Base):
    __tablename__ = "application_status_changes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    application_id: Mapped[int] = mapped_column(ForeignKey("applications.id"), nullable=False, index=True)
    from_status: Mapped[str] = mapped_column(String(20), nullable=False)
    to_status: Mapped[str] = mapped_column(String(20), nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    application: Mapped[Application] = relationship(back_populates="history")


class Payment(_RegionRefs, Base):
    __tablename__ = "payments"
    __scope_kind__ = ResourceKind.PAYMENT
    __scope_fields__ = {**_REGION_FIELDS, "project": "project_id", "scheme": "scheme_id", "owner": "owner_id"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    payment_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    application_id: Mapped[int] = mapped_column(ForeignKey("applications.id"), nullable=False, index=True)
    beneficiary_id: Mapped[int] = mapped_column(ForeignKey("beneficiaries.id"), nullable=False, index=True)
    project_id: Mapped[int | None] = mapped_column(ForeignKey("projects.id"), nullable=True, index=True)
    scheme_id: Mapped[int] = mapped_column(ForeignKey("schemes.id"), nullable=False, index=True)
    owner_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)

    amount: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False, index=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Donor(_RegionRefs, Base):
    __tablename__ = "donors"
    __scope_kind__ = ResourceKind.DONOR
    __scope_fields__ = dict(_REGION_FIELDS)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(15), nullable=True)
    donor_type: Mapped[str] = mapped_column(String(20), default="individual", nullable=False)
    total_donated: Mapped[float] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


SCOPED_MODELS: tuple[type[Base], ...] = (Project, Scheme, Beneficiary, Application, Payment, Donor)
