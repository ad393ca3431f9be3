from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from welfare.models.security import Region


class SqlRegionHierarchy:
    """
    `RegionHierarchy` backed by the regions table.

    One instance lives for one request; each region's children are read at most once.
    """

    def __init__(self, db: Session) -> None:
        self._db = db
        self._children: dict[int, tuple[int, ...]] = {}

    def get_children(self, region_id: int) -> tuple[int, ...]:
        cached = self._children.get(region_id)
        if cached is not None:
            return cached

        stmt = select(Region.id).where(Region.parent_id == region_id, Region.is_active.is_(True)).order_by(Region.id)
        children = tuple(self._db.scalars(stmt).all())
        self._children[region_id] = children
        return children
