"""Audit trail writes. Failures are logged and swallowed; they never fail the caller."""

import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.activity import Activity
from app.services.pagination import Page, PageRequest, paginate

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    type: str,
    description: str,
    user_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
) -> None:
    """
    Record an activity row in its own commit.
    Call after the primary write has been committed so a failure here
    only loses the audit entry.
    """
    try:
        db.add(Activity(type=type, description=description, user_id=user_id, details=details or {}))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Failed to log activity type={type}: {e}")


def list_activities(db: Session, page_request: PageRequest) -> Page[Activity]:
    """Admin dashboard feed, newest first."""
    query = db.query(Activity).order_by(Activity.created_at.desc(), Activity.id.desc())
    return paginate(query, page_request)
