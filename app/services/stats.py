"""Admin dashboard counters and recent items."""

from dataclasses import dataclass

from sqlalchemy.orm import Session, selectinload

from app.models.business import Business
from app.models.category import Category
from app.models.review import Review
from app.models.user import User
from app.services.filters import to_sqlalchemy
from app.services.moderation import ListingStatus, status_condition

RECENT_LIMIT = 5


@dataclass
class DashboardStats:
    users: int
    businesses: int
    active_businesses: int
    pending_businesses: int
    rejected_businesses: int
    reviews: int
    pending_reviews: int
    categories: int
    recent_users: list[User]
    recent_businesses: list[Business]
    recent_reviews: list[Review]


def _count_in_status(db: Session, status: ListingStatus) -> int:
    return db.query(Business).filter(to_sqlalchemy(status_condition(status), Business)).count()


def dashboard_stats(db: Session) -> DashboardStats:
    return DashboardStats(
        users=db.query(User).count(),
        businesses=db.query(Business).count(),
        active_businesses=_count_in_status(db, ListingStatus.ACTIVE),
        pending_businesses=_count_in_status(db, ListingStatus.PENDING),
        rejected_businesses=_count_in_status(db, ListingStatus.REJECTED),
        reviews=db.query(Review).count(),
        pending_reviews=db.query(Review).filter(Review.is_approved.is_(False)).count(),
        categories=db.query(Category).count(),
        recent_users=(
            db.query(User).order_by(User.created_at.desc(), User.id.desc()).limit(RECENT_LIMIT).all()
        ),
        recent_businesses=(
            db.query(Business)
            .options(selectinload(Business.category), selectinload(Business.owner))
            .order_by(Business.created_at.desc(), Business.id.desc())
            .limit(RECENT_LIMIT)
            .all()
        ),
        recent_reviews=(
            db.query(Review)
            .options(selectinload(Review.user), selectinload(Review.business))
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(RECENT_LIMIT)
            .all()
        ),
    )
