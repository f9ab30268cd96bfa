"""Admin-only moderation surface. Every route requires the ``admin`` role."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import require_admin
from app.core.config import settings
from app.core.errors import ValidationError
from app.db.session import get_db
from app.models.user import User
from app.routers import businesses as business_routes
from app.routers.businesses import business_page_response
from app.routers.reviews import review_page_response
from app.schemas.admin import DashboardStatsRead, DashboardStatsResponse
from app.schemas.business import BusinessEnvelope, BusinessListResponse, BusinessRead, OwnerLinkRequest
from app.schemas.review import ReviewEnvelope, ReviewListResponse, ReviewRead
from app.schemas.user import ActivityListResponse, ActivityRead
from app.services import businesses as business_service
from app.services import reviews as review_service
from app.services.activity import list_activities
from app.services.moderation import ListingStatus
from app.services.pagination import PageRequest
from app.services.stats import dashboard_stats

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

# Same handlers as /businesses/{id}/approve|reject, mounted for the admin dashboard
router.add_api_route(
    "/businesses/{business_id}/approve",
    business_routes.approve_business,
    methods=["PUT"],
    response_model=BusinessEnvelope,
)
router.add_api_route(
    "/businesses/{business_id}/reject",
    business_routes.reject_business,
    methods=["PUT"],
    response_model=BusinessEnvelope,
)


def _parse_status(raw: Optional[str]) -> Optional[ListingStatus]:
    if not raw or raw == "all":
        return None
    try:
        return ListingStatus(raw.lower())
    except ValueError:
        raise ValidationError(f"Invalid status '{raw}'. Use pending, active or rejected")


@router.get("/stats", response_model=DashboardStatsResponse)
def get_stats(db: Session = Depends(get_db)):
    """Dashboard counters plus the five newest users, businesses and reviews."""
    return DashboardStatsResponse(stats=DashboardStatsRead.model_validate(dashboard_stats(db)))


@router.get("/businesses", response_model=BusinessListResponse)
def list_businesses_for_moderation(
    status: Optional[str] = Query(None, description="pending | active | rejected"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Moderation queue, newest first. Visibility rules do not apply here."""
    page_request = PageRequest.from_raw(page, limit, default_limit=settings.admin_page_size)
    result = business_service.list_by_status(db, _parse_status(status), page_request)
    return business_page_response(result)


@router.put("/businesses/{business_id}/owner", response_model=BusinessEnvelope)
def link_owner(
    business_id: int,
    body: OwnerLinkRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Assign a listing to a user. The user becomes a business owner; status is unchanged."""
    business = business_service.get_business_or_404(db, business_id)
    linked = business_service.link_business_owner(db, business, body.owner_id, admin)
    return BusinessEnvelope(message="Business owner updated", business=BusinessRead.model_validate(linked))


_REVIEW_STATUSES = {"pending": False, "approved": True}


def _parse_review_status(raw: Optional[str]) -> Optional[bool]:
    if not raw or raw.lower() == "all":
        return None
    try:
        return _REVIEW_STATUSES[raw.lower()]
    except KeyError:
        raise ValidationError(f"Invalid status '{raw}'. Use pending, approved or all")


@router.get("/reviews", response_model=ReviewListResponse)
def list_reviews_for_moderation(
    status: Optional[str] = Query(None, description="pending | approved | all"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Every review, newest first; ``status=pending`` lists the unapproved ones."""
    page_request = PageRequest.from_raw(page, limit, default_limit=settings.admin_page_size)
    result = review_service.list_reviews_by_approval(db, _parse_review_status(status), page_request)
    return review_page_response(result)


def _set_review_approval(review_id: int, approved: bool, admin: User, db: Session) -> ReviewEnvelope:
    review = review_service.get_review_or_404(db, review_id)
    review = review_service.set_review_approval(db, review, approved, admin)
    return ReviewEnvelope(
        message=f"Review {'approved' if approved else 'unapproved'}",
        review=ReviewRead.model_validate(review),
    )


@router.put("/reviews/{review_id}/approve", response_model=ReviewEnvelope)
def approve_review(review_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return _set_review_approval(review_id, True, admin, db)


@router.put("/reviews/{review_id}/unapprove", response_model=ReviewEnvelope)
def unapprove_review(review_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Hide a review and drop it from the business rating."""
    return _set_review_approval(review_id, False, admin, db)


@router.get("/activities", response_model=ActivityListResponse)
def get_activities(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    page_request = PageRequest.from_raw(page, limit, default_limit=settings.admin_page_size)
    result = list_activities(db, page_request)
    return ActivityListResponse(
        count=result.count,
        total=result.total,
        page=result.page,
        pages=result.pages,
        activities=[ActivityRead.model_validate(a) for a in result.items],
    )
