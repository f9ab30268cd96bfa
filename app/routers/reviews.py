from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.db.session import get_db
from app.models.review import Review
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.review import (
    HelpfulResponse,
    ReviewCreate,
    ReviewEnvelope,
    ReviewListResponse,
    ReviewRead,
    ReviewRespond,
    ReviewUpdate,
)
from app.services import reviews as review_service
from app.services.pagination import Page, PageRequest

router = APIRouter(prefix="/reviews", tags=["reviews"])


def review_page_response(page: Page[Review]) -> ReviewListResponse:
    return ReviewListResponse(
        count=page.count,
        total=page.total,
        page=page.page,
        pages=page.pages,
        reviews=[ReviewRead.model_validate(r) for r in page.items],
    )


def _envelope(review: Review, message: Optional[str] = None) -> ReviewEnvelope:
    return ReviewEnvelope(message=message, review=ReviewRead.model_validate(review))


@router.get("", response_model=ReviewListResponse)
def list_reviews(
    business: Optional[int] = Query(None, description="Only reviews of this business"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Approved reviews, newest first."""
    page_request = PageRequest.from_raw(page, limit)
    return review_page_response(review_service.list_reviews(db, page_request, business_id=business))


@router.get("/{review_id}", response_model=ReviewEnvelope)
def get_review(review_id: int, db: Session = Depends(get_db)):
    return _envelope(review_service.get_review_or_404(db, review_id))


@router.post("", response_model=ReviewEnvelope, status_code=201)
def create_review(
    body: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Review a business. One review per user per business; a second attempt is a 400.
    The business rating is recalculated before this returns.
    """
    return _envelope(review_service.create_review(db, body, current_user), "Review submitted")


@router.put("/{review_id}", response_model=ReviewEnvelope)
def update_review(
    review_id: int,
    body: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    review = review_service.get_review_or_404(db, review_id)
    return _envelope(review_service.update_review(db, review, body, current_user))


@router.delete("/{review_id}", response_model=MessageResponse)
def delete_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    review = review_service.get_review_or_404(db, review_id)
    review_service.delete_review(db, review, current_user)
    return MessageResponse(message="Review deleted successfully")


@router.post("/{review_id}/helpful", response_model=HelpfulResponse)
def mark_helpful(
    review_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Toggle the caller's helpful vote."""
    review = review_service.get_review_or_404(db, review_id)
    review = review_service.toggle_helpful(db, review, current_user)
    return HelpfulResponse(helpful_count=review.helpful_count)


@router.post("/{review_id}/respond", response_model=ReviewEnvelope)
def respond_to_review(
    review_id: int,
    body: ReviewRespond,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Owner (or admin) reply shown under the review."""
    review = review_service.get_review_or_404(db, review_id)
    return _envelope(
        review_service.respond_to_review(db, review, body.comment, current_user),
        "Response added",
    )
