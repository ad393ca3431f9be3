from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from welfare.db.base import Base


class Region(Base):
    """One node of the state -> district -> area -> unit tree."""

    __tablename__ = "regions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    level: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    parent_id: Mapped[int | None] = mapped_column(ForeignKey("regions.id"), nullable=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    parent: Mapped["Region | None"] = relationship(remote_side="Region.id", back_populates="children")
    children: Mapped[list["Region"]] = relationship(back_populates="parent")


user_regions = Table(
    "user_regions",
    Base.metadata,
    Column("user_id", ForeignKey("users.id"), primary_key=True),
    Column("region_id", ForeignKey("regions.id"), primary_key=True),
)

user_projects = Table(
    "user_projects",
    Base.metadata,
    Column("user_id", ForeignKey("users.id"), primary_key=True),
    Column("project_id", ForeignKey("projects.id"), primary_key=True),
)

user_schemes = Table(
    "user_schemes",
    Base.metadata,
    Column("user_id", ForeignKey("users.id"), primary_key=True),
    Column("scheme_id", ForeignKey("schemes.id"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("phone"),
        UniqueConstraint("email"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(15), nullable=False)
    email: Mapped[str | None] = mapped_column(String(100), nullable=True)

    role: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    # Level tag for `regions`; NULL means "the level implied by the role".
    scope_level: Mapped[str | None] = mapped_column(String(10), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    created_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    regions: Mapped[list[Region]] = relationship(secondary=user_regions)
    projects: Mapped[list["Project"]] = relationship(secondary=user_projects)  # noqa: F821
    schemes: Mapped[list["Scheme"]] = relationship(secondary=user_schemes)  # noqa: F821
