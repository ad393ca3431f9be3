"""
Inputs to the scope authorizer: who is asking (Principal) and what they are
asking about (Resource).

Both are plain frozen dataclasses with opaque ids. The web layer builds them from
ORM rows; tests build them directly.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from .roles import RegionLevel, Role

Ref = Hashable


def _refs(values: Iterable[Ref] | None) -> frozenset[Ref]:
    if not values:
        return frozenset()
    return frozenset(v for v in values if v is not None)


class Action(StrEnum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    APPROVE = "approve"
    DISBURSE = "disburse"


class ResourceKind(StrEnum):
    APPLICATION = "application"
    BENEFICIARY = "beneficiary"
    DONOR = "donor"
    PAYMENT = "payment"
    PROJECT = "project"
    SCHEME = "scheme"

    @property
    def is_financial(self) -> bool:
        """Donor records are organisation-level financial data."""
        return self is ResourceKind.DONOR


@dataclass(frozen=True)
class Scope:
    """
    What a principal is assigned to.

    `regions` is a set so one admin can cover several districts; `level` tags which
    hierarchy level those ids belong to. An untagged scope is taken to be at the
    level implied by the role.
    """

    regions: frozenset[Ref] = frozenset()
    level: RegionLevel | None = None
    projects: frozenset[Ref] = frozenset()
    schemes: frozenset[Ref] = frozenset()

    @classmethod
    def of(
        cls,
        regions: Iterable[Ref] | None = None,
        *,
        level: RegionLevel | str | None = None,
        projects: Iterable[Ref] | None = None,
        schemes: Iterable[Ref] | None = None,
    ) -> Scope:
        return cls(
            regions=_refs(regions),
            level=RegionLevel.coerce(level),
            projects=_refs(projects),
            schemes=_refs(schemes),
        )


@dataclass(frozen=True)
class Principal:
    user_id: Ref | None
    role: Role | None
    scope: Scope = field(default_factory=Scope)

    @classmethod
    def of(cls, role: object, scope: Scope | None = None, user_id: Ref | None = None) -> Principal:
        """Build a principal; an unknown role string becomes None (deny everything)."""
        return cls(user_id=user_id, role=Role.coerce(role), scope=scope or Scope())


@dataclass(frozen=True)
class Resource:
    """
    Any scoped entity: application, beneficiary, donor, payment, project or scheme.

    `open_to_all_regions` is the explicit "applies everywhere" marker used by schemes
    and projects that have no target regions. Regional admins only look at target
    regions and that marker when the resource has nothing at their own level.
    """

    kind: ResourceKind
    state: Ref | None = None
    district: Ref | None = None
    area: Ref | None = None
    unit: Ref | None = None
    project: Ref | None = None
    scheme: Ref | None = None
    owner: Ref | None = None
    target_regions: frozenset[Ref] = frozenset()
    open_to_all_regions: bool = False

    def region_at(self, level: RegionLevel) -> Ref | None:
        return getattr(self, level.value)
