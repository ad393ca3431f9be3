"""
Role hierarchy table.

Static facts about the administrative roles:
- which roles a role may assign/manage (a strict hierarchy, super_admin on top)
- numeric rank per role (0 = highest), used for escalation checks
- which region level a regional admin operates at

Everything here is immutable module data. Unknown roles never raise; they resolve
to "no permissions" and the lowest rank.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Mapping


class Role(StrEnum):
    SUPER_ADMIN = "super_admin"
    STATE_ADMIN = "state_admin"
    DISTRICT_ADMIN = "district_admin"
    AREA_ADMIN = "area_admin"
    UNIT_ADMIN = "unit_admin"
    PROJECT_COORDINATOR = "project_coordinator"
    SCHEME_COORDINATOR = "scheme_coordinator"
    BENEFICIARY = "beneficiary"

    @classmethod
    def coerce(cls, value: object) -> Role | None:
        """Return the Role for `value`, or None for anything unrecognised."""
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class RegionLevel(StrEnum):
    STATE = "state"
    DISTRICT = "district"
    AREA = "area"
    UNIT = "unit"

    @classmethod
    def coerce(cls, value: object) -> RegionLevel | None:
        if isinstance(value, RegionLevel):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


UNRESTRICTED_ROLES: frozenset[Role] = frozenset({Role.SUPER_ADMIN, Role.STATE_ADMIN})

_MANAGEABLE: Mapping[Role, frozenset[Role]] = {
    Role.SUPER_ADMIN: frozenset(r for r in Role if r is not Role.SUPER_ADMIN),
    Role.STATE_ADMIN: frozenset(
        {
            Role.DISTRICT_ADMIN,
            Role.AREA_ADMIN,
            Role.UNIT_ADMIN,
            Role.PROJECT_COORDINATOR,
            Role.SCHEME_COORDINATOR,
            Role.BENEFICIARY,
        }
    ),
    Role.DISTRICT_ADMIN: frozenset({Role.AREA_ADMIN, Role.UNIT_ADMIN, Role.BENEFICIARY}),
    Role.AREA_ADMIN: frozenset({Role.UNIT_ADMIN, Role.BENEFICIARY}),
    Role.UNIT_ADMIN: frozenset({Role.BENEFICIARY}),
    Role.PROJECT_COORDINATOR: frozenset(),
    Role.SCHEME_COORDINATOR: frozenset(),
    Role.BENEFICIARY: frozenset(),
}

_RANK: Mapping[Role, int] = {
    Role.SUPER_ADMIN: 0,
    Role.STATE_ADMIN: 1,
    Role.DISTRICT_ADMIN: 2,
    Role.AREA_ADMIN: 3,
    Role.UNIT_ADMIN: 4,
    Role.PROJECT_COORDINATOR: 5,
    Role.SCHEME_COORDINATOR: 5,
    Role.BENEFICIARY: 6,
}
LOWEST_RANK = 6

# Region level each regional admin is pinned to.
ROLE_LEVEL: Mapping[Role, RegionLevel] = {
    Role.STATE_ADMIN: RegionLevel.STATE,
    Role.DISTRICT_ADMIN: RegionLevel.DISTRICT,
    Role.AREA_ADMIN: RegionLevel.AREA,
    Role.UNIT_ADMIN: RegionLevel.UNIT,
}

_ADMINISTERED_LEVELS: Mapping[Role, frozenset[RegionLevel]] = {
    Role.STATE_ADMIN: frozenset(RegionLevel),
    Role.DISTRICT_ADMIN: frozenset({RegionLevel.DISTRICT, RegionLevel.AREA, RegionLevel.UNIT}),
    Role.AREA_ADMIN: frozenset({RegionLevel.AREA, RegionLevel.UNIT}),
    Role.UNIT_ADMIN: frozenset({RegionLevel.UNIT}),
}


def manageable_roles(role: object) -> frozenset[Role]:
    resolved = Role.coerce(role)
    if resolved is None:
        return frozenset()
    return _MANAGEABLE.get(resolved, frozenset())


def can_assign(actor_role: object, target_role: object) -> bool:
    """True iff `actor_role` may create/manage users holding `target_role`."""
    target = Role.coerce(target_role)
    if target is None:
        return False
    return target in manageable_roles(actor_role)


def rank(role: object) -> int:
    resolved = Role.coerce(role)
    if resolved is None:
        return LOWEST_RANK
    return _RANK[resolved]


def region_level_for(role: object) -> RegionLevel | None:
    resolved = Role.coerce(role)
    if resolved is None:
        return None
    return ROLE_LEVEL.get(resolved)


def can_administer_level(role: object, level: object) -> bool:
    """An admin may only work with its own level and the levels below it."""
    resolved = Role.coerce(role)
    target = RegionLevel.coerce(level)
    if resolved is None or target is None:
        return False
    if resolved is Role.SUPER_ADMIN:
        return True
    return target in _ADMINISTERED_LEVELS.get(resolved, frozenset())
