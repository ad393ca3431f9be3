from __future__ import annotations

import logging
from typing import TypeVar

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from welfare.db.filters import PER_ROW_CHECK
from welfare.db.scoping import to_resource
from welfare.scope import Action
from welfare.security.context import AuthzContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_authorized(db: Session, model: type[T], id: int, authz: AuthzContext, action: Action = Action.READ) -> T:
    """
    Single-resource fetch: load the row, then run the access predicate on it.

    - missing row -> 404
    - row outside the principal's scope -> 403, with no resource data in the body
    """

    stmt = select(model).where(model.id == id).execution_options(**{PER_ROW_CHECK: True})
    row = db.scalars(stmt).first()
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{model.__name__} not found")

    if not authz.can_access(to_resource(row), action):
        logger.info(
            "Access denied user_id=%s action=%s resource=%s id=%s",
            authz.user_id,
            action,
            model.__name__,
            id,
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    return row
