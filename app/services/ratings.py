"""
Rating aggregation.

Business.rating_average / rating_count always mirror the approved reviews of
that business. Review writes call ``recalculate_business_rating`` before they
commit, so the aggregate lands in the same transaction as the change.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.models.business import Business
from app.models.review import Review

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")


def round_rating(value) -> float:
    """Round half-up to two decimals (4.125 -> 4.13)."""
    return float(Decimal(str(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def recalculate_business_rating(db: Session, business_id: int) -> tuple[float, int]:
    """
    Recompute average/count over approved reviews and write them with a targeted UPDATE.
    Does not commit. Returns (average, count); both are 0 with no approved reviews.
    """
    # Pending review inserts/updates/deletes must be visible to the aggregate
    db.flush()

    # Serialize concurrent recomputations for the same business (no-op on SQLite)
    db.execute(select(Business.id).where(Business.id == business_id).with_for_update())

    avg_rating, count = db.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(
            Review.business_id == business_id,
            Review.is_approved.is_(True),
        )
    ).one()

    if not count:
        average, count = 0.0, 0
    else:
        average = round_rating(avg_rating)

    db.execute(
        update(Business)
        .where(Business.id == business_id)
        .values(rating_average=average, rating_count=count)
    )
    logger.debug(f"Business id={business_id} rating recalculated: average={average}, count={count}")
    return average, count
