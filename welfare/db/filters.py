from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import event
from sqlalchemy.orm import Session, with_loader_criteria

from welfare.db.scoping import criteria_for

if TYPE_CHECKING:
    from welfare.security.context import AuthzContext

# Session.info key the hook reads.
AUTHZ_KEY = "authz"

# Execution option set by `welfare.security.access.get_authorized`: the caller
# fetches one row and runs the access predicate on it instead.
PER_ROW_CHECK = "scope_checked_per_row"


def attach_authz(db: Session, authz: AuthzContext) -> None:
    """Scope every ORM select on `db` to what `authz` may read."""
    db.info[AUTHZ_KEY] = authz


@event.listens_for(Session, "do_orm_execute")
def _apply_scope_filters(execute_state) -> None:
    """
    Transparent regional scoping.

    Existing query code stays unchanged:
        db.scalars(select(Application)).all()
    returns only the applications the request's principal may read, and so does
    `select(aliased(Application))`. The criteria come from the scope authorizer's
    filter builder and are ANDed with whatever WHERE clauses the caller already has.
    """

    if not execute_state.is_select:
        return

    authz = execute_state.session.info.get(AUTHZ_KEY)
    if authz is None:
        return

    if execute_state.execution_options.get(PER_ROW_CHECK, False):
        return

    # Local import to avoid cycles.
    from welfare.models.programs import SCOPED_MODELS  # noqa: WPS433 (local import)

    options = []
    for model in SCOPED_MODELS:
        criteria = criteria_for(model, authz.fragment_for(model.__scope_kind__))
        if criteria is None:
            continue
        # A plain expression (not a lambda): the ORM adapts it onto every alias of
        # `model`, and lambda closures would be cached across requests.
        options.append(with_loader_criteria(model, criteria, include_aliases=True))

    if options:
        execute_state.statement = execute_state.statement.options(*options)
