"""
Review use cases.

Every write that can change a business's rating aggregate (create, delete,
rating edit, approval change) recalculates it before committing.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from app.models.business import Business
from app.models.review import Review
from app.models.user import User
from app.schemas.review import ReviewCreate, ReviewUpdate
from app.services.activity import log_activity
from app.services.pagination import Page, PageRequest, paginate
from app.services.ratings import recalculate_business_rating

logger = logging.getLogger(__name__)

# Reviews are published immediately; admins can withdraw approval later.
DEFAULT_REVIEW_APPROVAL = True


def get_review_or_404(db: Session, review_id: int) -> Review:
    review = db.get(Review, review_id)
    if not review:
        raise NotFoundError("Review not found")
    return review


def _review_query(db: Session):
    return db.query(Review).options(selectinload(Review.user), selectinload(Review.business))


def _newest_first(query):
    return query.order_by(Review.created_at.desc(), Review.id.desc())


def list_reviews(
    db: Session,
    page_request: PageRequest,
    business_id: Optional[int] = None,
    approved_only: bool = True,
) -> Page[Review]:
    query = _review_query(db)
    if approved_only:
        query = query.filter(Review.is_approved.is_(True))
    if business_id is not None:
        query = query.filter(Review.business_id == business_id)
    return paginate(_newest_first(query), page_request)


def list_reviews_by_approval(db: Session, approved: Optional[bool], page_request: PageRequest) -> Page[Review]:
    """Admin review queue, newest first. ``approved=None`` lists every review."""
    query = _review_query(db)
    if approved is not None:
        query = query.filter(Review.is_approved.is_(approved))
    return paginate(_newest_first(query), page_request)


def create_review(db: Session, data: ReviewCreate, user: User) -> Review:
    business = db.get(Business, data.business_id)
    if not business:
        raise NotFoundError("Business not found")

    existing = (
        db.query(Review.id)
        .filter(Review.business_id == data.business_id, Review.user_id == user.id)
        .first()
    )
    if existing:
        raise ValidationError("You have already reviewed this business")

    review = Review(
        business_id=data.business_id,
        user_id=user.id,
        rating=data.rating,
        title=data.title,
        comment=data.comment,
        is_approved=DEFAULT_REVIEW_APPROVAL,
        helpful_by=[],
    )
    db.add(review)
    try:
        recalculate_business_rating(db, business.id)
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent submission by the same user
        db.rollback()
        raise ValidationError("You have already reviewed this business")
    db.refresh(review)
    logger.info(f"Review created: id={review.id}, business_id={business.id}, rating={review.rating}")

    log_activity(
        db,
        "review_submitted",
        f'New {review.rating}-star review for "{business.name}" was submitted',
        user_id=user.id,
        details={"reviewId": review.id, "businessId": business.id, "rating": review.rating},
    )
    return review


def update_review(db: Session, review: Review, data: ReviewUpdate, user: User) -> Review:
    if review.user_id != user.id:
        raise PermissionDeniedError("Not authorized to update this review")

    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    rating_changed = "rating" in changes and changes["rating"] != review.rating
    for field, value in changes.items():
        setattr(review, field, value)

    if rating_changed:
        recalculate_business_rating(db, review.business_id)
    db.commit()
    db.refresh(review)
    logger.info(f"Review updated: id={review.id}, fields={sorted(changes)}, rating_changed={rating_changed}")
    return review


def delete_review(db: Session, review: Review, user: User) -> None:
    if review.user_id != user.id and not user.is_admin:
        raise PermissionDeniedError("Not authorized to delete this review")
    review_id, business_id = review.id, review.business_id
    db.delete(review)
    recalculate_business_rating(db, business_id)
    db.commit()
    logger.info(f"Review deleted: id={review_id}, business_id={business_id}")


def toggle_helpful(db: Session, review: Review, user: User) -> Review:
    """Mark or unmark a review as helpful for ``user``."""
    helpful_by = list(review.helpful_by or [])
    if user.id in helpful_by:
        helpful_by.remove(user.id)
        review.helpful_count = max(0, (review.helpful_count or 0) - 1)
    else:
        helpful_by.append(user.id)
        review.helpful_count = (review.helpful_count or 0) + 1
    # Reassign so the JSON column is flagged dirty
    review.helpful_by = helpful_by
    db.commit()
    db.refresh(review)
    return review


def respond_to_review(db: Session, review: Review, comment: str, user: User) -> Review:
    business = review.business
    if business.owner_id != user.id and not user.is_admin:
        raise PermissionDeniedError("Only the business owner can respond to reviews")
    review.response_comment = comment
    review.responded_at = datetime.now(timezone.utc)
    review.responded_by = user.id
    db.commit()
    db.refresh(review)
    return review


def set_review_approval(db: Session, review: Review, approved: bool, admin: User) -> Review:
    if review.is_approved != approved:
        review.is_approved = approved
        recalculate_business_rating(db, review.business_id)
        db.commit()
        db.refresh(review)
        log_activity(
            db,
            "review_approved" if approved else "review_unapproved",
            f"Review {review.id} was {'approved' if approved else 'unapproved'} by admin",
            user_id=admin.id,
            details={"reviewId": review.id, "businessId": review.business_id},
        )
    return review
