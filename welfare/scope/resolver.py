"""
Scope resolution: principal -> the set of ids it may act upon.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
import logging
from typing import Protocol, Union

from .principal import Principal, Ref
from .roles import UNRESTRICTED_ROLES, region_level_for

logger = logging.getLogger(__name__)


class RegionHierarchy(Protocol):
    """Read-only view of the state -> district -> area -> unit tree."""

    def get_children(self, region_id: Ref) -> Iterable[Ref]: ...


@dataclass(frozen=True)
class Unrestricted:
    """No constraint at all (super_admin, state_admin)."""


@dataclass(frozen=True)
class Restricted:
    region_ids: frozenset[Ref] = frozenset()
    project_ids: frozenset[Ref] = frozenset()
    scheme_ids: frozenset[Ref] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not (self.region_ids or self.project_ids or self.scheme_ids)


ScopeFilter = Union[Unrestricted, Restricted]

UNRESTRICTED = Unrestricted()
NOTHING = Restricted()


def expand_descendants(region_ids: Iterable[Ref], hierarchy: RegionHierarchy) -> frozenset[Ref]:
    """
    Return `region_ids` plus every region below them.

    Breadth-first, one `get_children` call per visited region; a region seen twice is
    not expanded again, so a malformed (cyclic) hierarchy still terminates.
    """

    seen: set[Ref] = set(region_ids)
    queue: deque[Ref] = deque(seen)
    while queue:
        current = queue.popleft()
        for child in hierarchy.get_children(current) or ():
            if child is None or child in seen:
                continue
            seen.add(child)
            queue.append(child)
    return frozenset(seen)


def resolve(principal: Principal, hierarchy: RegionHierarchy | None = None) -> ScopeFilter:
    """
    Expand a principal's declared scope into the operative scope filter.

    - super_admin / state_admin -> Unrestricted; their scope is never read.
    - everyone else -> Restricted with exactly the assigned ids, or with the assigned
      regions plus their descendants when a hierarchy is given.
    - a principal without a recognised role, or a regional admin whose scope is tagged
      with a different level than its role, gets an empty Restricted scope.
    """

    role = getattr(principal, "role", None)
    scope = getattr(principal, "scope", None)
    if role is None or scope is None:
        logger.warning("Scope: malformed principal, resolving to empty scope user_id=%s", getattr(principal, "user_id", None))
        return NOTHING

    if role in UNRESTRICTED_ROLES:
        return UNRESTRICTED

    region_ids = scope.regions
    expected_level = region_level_for(role)
    if expected_level is not None and scope.level is not None and scope.level is not expected_level:
        logger.warning(
            "Scope: level tag %s does not match role %s user_id=%s; ignoring regions",
            scope.level,
            role,
            principal.user_id,
        )
        region_ids = frozenset()

    if hierarchy is not None and region_ids:
        region_ids = expand_descendants(region_ids, hierarchy)

    return Restricted(
        region_ids=frozenset(region_ids),
        project_ids=scope.projects,
        scheme_ids=scope.schemes,
    )
