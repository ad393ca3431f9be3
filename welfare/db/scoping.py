"""
Bridge between welfare.scope and the ORM.

- `to_resource(row)` turns a scoped ORM object into a `Resource` for the access predicate.
- `criteria_for(model, fragment)` turns a `QueryFragment` into a SQLAlchemy boolean
  expression for that model.

Both read the model's `__scope_fields__`, so the predicate and the SQL filter see
the same columns.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import and_, false, or_, true
from sqlalchemy.sql.elements import ColumnElement

from welfare.scope import Condition, Match, QueryFragment, Resource


def to_resource(row: Any) -> Resource:
    fields: dict[str, Any] = {}
    for field_name, attr_name in type(row).__scope_fields__.items():
        value = getattr(row, attr_name)
        if field_name == "target_regions":
            value = frozenset(r.id for r in value or ())
        elif field_name == "open_to_all_regions":
            value = bool(value)
        fields[field_name] = value
    return Resource(kind=type(row).__scope_kind__, **fields)


def _sorted_values(values: frozenset) -> list:
    return sorted(values, key=str)


def _condition_criteria(model: type, condition: Condition) -> ColumnElement[bool]:
    if condition.field == "kind":
        return true() if model.__scope_kind__ in condition.values else false()

    attr_name = model.__scope_fields__.get(condition.field)
    if attr_name is None:
        # The model has no such column, so the condition can never hold.
        return false()

    attr = getattr(model, attr_name)
    if condition.op is Match.IN:
        criteria = attr.in_(_sorted_values(condition.values))
    elif condition.op is Match.OVERLAPS:
        target = attr.property.mapper.class_
        criteria = attr.any(target.id.in_(_sorted_values(condition.values)))
    else:
        criteria = attr.is_(True)

    unset_attr = model.__scope_fields__.get(condition.only_if_unset) if condition.only_if_unset else None
    if unset_attr is not None:
        criteria = and_(getattr(model, unset_attr).is_(None), criteria)
    return criteria


def criteria_for(model: type, fragment: QueryFragment) -> ColumnElement[bool] | None:
    """
    SQL equivalent of `fragment.matches(...)` for rows of `model`.

    Returns None when the fragment is unconstrained (nothing to add to the query).
    """

    if fragment.any_of is None:
        return None
    if not fragment.any_of:
        return false()
    return or_(*(_condition_criteria(model, c) for c in fragment.any_of))
