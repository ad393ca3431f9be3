"""
Declarative query fragments.

A QueryFragment is what list endpoints hand to storage instead of checking rows one
by one. It is a disjunction of simple conditions over Resource fields:

    IN        resource.<field> is one of `values`
    OVERLAPS  resource.<field> (a set) shares an element with `values`
    FLAG      resource.<field> is true

A condition with `only_if_unset` also requires `resource.<only_if_unset>` to be None;
regional admins use it so a program's target regions count only for records that
carry no region at the admin's own level.

`any_of=None` means "no constraint"; `any_of=()` means "matches nothing". Storage
backends translate the conditions (see welfare.db.scoping); `matches()` is the
in-memory reference evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .principal import Ref, Resource


class Match(StrEnum):
    IN = "in"
    OVERLAPS = "overlaps"
    FLAG = "flag"


@dataclass(frozen=True)
class Condition:
    field: str
    op: Match
    values: frozenset[Ref] = frozenset()
    only_if_unset: str | None = None

    def matches(self, resource: Resource) -> bool:
        if self.only_if_unset is not None and getattr(resource, self.only_if_unset, None) is not None:
            return False
        value = getattr(resource, self.field, None)
        if self.op is Match.IN:
            return value is not None and value in self.values
        if self.op is Match.OVERLAPS:
            return bool(value) and not self.values.isdisjoint(value)
        return value is True


@dataclass(frozen=True)
class QueryFragment:
    any_of: tuple[Condition, ...] | None = None

    @property
    def is_unconstrained(self) -> bool:
        return self.any_of is None

    @property
    def matches_nothing(self) -> bool:
        return self.any_of == ()

    def matches(self, resource: Resource) -> bool:
        if self.any_of is None:
            return True
        return any(cond.matches(resource) for cond in self.any_of)

    def fields(self) -> frozenset[str]:
        return frozenset(c.field for c in self.any_of or ())


NO_CONSTRAINT = QueryFragment(any_of=None)
MATCH_NOTHING = QueryFragment(any_of=())
