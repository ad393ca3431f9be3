from __future__ import annotations

from datetime import datetime
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from welfare.models.programs import Application, ApplicationStatusChange
from welfare.scope import ApplicationStatus, is_valid_transition

logger = logging.getLogger(__name__)


class InvalidTransition(ValueError):
    """Raised when an application cannot move to the requested status."""


def application_stats(db: Session) -> dict[str, int]:
    """
    Application counts per status.

    Runs through the session's scoping hook like any other query, so a regional
    admin only counts applications in its own regions.
    """

    counts = {s.value: 0 for s in ApplicationStatus}
    stmt = select(Application.status, func.count(Application.id)).group_by(Application.status)
    for status, count in db.execute(stmt).all():
        counts[status] = count
    return counts


def change_status(
    db: Session,
    application: Application,
    new_status: ApplicationStatus,
    changed_by_id: int,
    comment: str | None = None,
    approved_amount: float | None = None,
) -> Application:
    """
    Move `application` to `new_status`, stamp who did it and record history.

    The caller has already checked the principal may approve this application.
    """

    old_status = application.status
    if not is_valid_transition(old_status, new_status):
        raise InvalidTransition(f"Cannot move application from {old_status!r} to {new_status.value!r}")

    now = datetime.utcnow()
    application.status = new_status.value

    if new_status is ApplicationStatus.UNDER_REVIEW:
        application.reviewed_by_id = changed_by_id
        application.reviewed_at = now
    elif new_status is ApplicationStatus.APPROVED:
        application.approved_by_id = changed_by_id
        application.approved_at = now
        application.approved_amount = approved_amount if approved_amount is not None else application.requested_amount
    elif new_status is ApplicationStatus.REJECTED:
        application.rejected_by_id = changed_by_id
        application.rejected_at = now
        application.rejection_reason = comment
    elif new_status is ApplicationStatus.COMPLETED:
        application.completed_at = now

    db.add(
        ApplicationStatusChange(
            application_id=application.id,
            from_status=old_status,
            to_status=new_status.value,
            comment=comment or f"Status changed from {old_status} to {new_status.value}",
            changed_by_id=changed_by_id,
            changed_at=now,
        )
    )
    db.commit()
    db.refresh(application)

    logger.info(
        "Application status changed id=%s from=%s to=%s by=%s",
        application.id,
        old_status,
        new_status.value,
        changed_by_id,
    )
    return application
