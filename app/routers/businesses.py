import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from app.core.auth import get_current_user, get_current_user_optional, get_viewer_context, require_admin
from app.db.session import get_db
from app.models.business import Business
from app.models.user import User
from app.schemas.business import (
    BusinessCreate,
    BusinessEnvelope,
    BusinessListResponse,
    BusinessRead,
    BusinessUpdate,
    RejectRequest,
    VisibilityUpdate,
)
from app.schemas.common import MessageResponse
from app.services import businesses as business_service
from app.services.filters import BusinessSearchParams, ViewerContext
from app.services.notifications import approval_email, rejection_email, send_email
from app.services.pagination import Page, PageRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/businesses", tags=["businesses"])


def business_page_response(page: Page[Business]) -> BusinessListResponse:
    return BusinessListResponse(
        count=page.count,
        total=page.total,
        page=page.page,
        pages=page.pages,
        businesses=[BusinessRead.model_validate(b) for b in page.items],
    )


def _envelope(business: Business, message: Optional[str] = None) -> BusinessEnvelope:
    return BusinessEnvelope(message=message, business=BusinessRead.model_validate(business))


def _notify_owner(background_tasks: BackgroundTasks, business: Business, approved: bool) -> None:
    """Queue the approval/rejection email for the listing owner, if there is one to write to."""
    owner = business.owner
    if owner is None or not owner.email:
        return
    if approved:
        subject, html = approval_email(owner.name, business.name)
    else:
        subject, html = rejection_email(owner.name, business.name, business.rejection_reason or "")
    logger.info(f"Queued {'approval' if approved else 'rejection'} email for business id={business.id}")
    background_tasks.add_task(send_email, owner.email, subject, html)


@router.get("", response_model=BusinessListResponse)
def list_businesses(
    request: Request,
    sort: Optional[str] = Query(None, description="rating | name | views | newest | oldest"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    viewer: Optional[ViewerContext] = Depends(get_viewer_context),
    db: Session = Depends(get_db),
):
    """
    Search listings.

    Filters (all optional, combined with AND): search, location, category/categories,
    subCategory/subCategories, city/cities, state/states, zipCode, ratings/minRating,
    featured, ownerId, publicOnly. Multi-valued filters accept repeated keys,
    ``key[]`` or comma separated values. Anonymous callers only see approved public
    listings; owners also see their own hidden or pending ones.
    """
    params = BusinessSearchParams.from_query(request.query_params)
    page_request = PageRequest.from_raw(page, limit)
    result = business_service.search_businesses(db, params, viewer, sort, page_request)
    return business_page_response(result)


@router.post("", response_model=BusinessEnvelope, status_code=201)
def create_business(
    business: BusinessCreate,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """Submit a new listing. It stays pending until an admin approves it."""
    created = business_service.create_business(db, business, current_user)
    return _envelope(created, "Business submitted for approval")


@router.get("/{id_or_slug}", response_model=BusinessEnvelope)
def get_business(
    id_or_slug: str,
    viewer: Optional[ViewerContext] = Depends(get_viewer_context),
    db: Session = Depends(get_db),
):
    """Get one listing by numeric id or slug. Counts a view."""
    return _envelope(business_service.get_business_for_viewer(db, id_or_slug, viewer))


@router.put("/{business_id}", response_model=BusinessEnvelope)
def update_business(
    business_id: int,
    body: BusinessUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    business = business_service.get_business_or_404(db, business_id)
    return _envelope(business_service.update_business(db, business, body, current_user))


@router.delete("/{business_id}", response_model=MessageResponse)
def delete_business(
    business_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    business = business_service.get_business_or_404(db, business_id)
    business_service.delete_business(db, business, current_user)
    return MessageResponse(message="Business deleted successfully")


@router.put("/{business_id}/visibility", response_model=BusinessEnvelope)
def update_visibility(
    business_id: int,
    body: VisibilityUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    business = business_service.get_business_or_404(db, business_id)
    updated = business_service.set_visibility(db, business, body.is_public, current_user)
    return _envelope(updated, f"Business is now {'public' if updated.is_public else 'private'}")


@router.post("/{business_id}/resubmit", response_model=BusinessEnvelope)
def resubmit_business(
    business_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Send a rejected listing back to the moderation queue."""
    business = business_service.get_business_or_404(db, business_id)
    return _envelope(
        business_service.resubmit_business(db, business, current_user),
        "Business resubmitted for approval",
    )


@router.post("/{business_id}/claim", response_model=BusinessEnvelope)
def claim_business(
    business_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Claim an unowned listing. The listing returns to pending until re-approved."""
    business = business_service.get_business_or_404(db, business_id)
    return _envelope(
        business_service.claim_business(db, business, current_user),
        "Business claimed. It will be visible again once an admin approves it.",
    )


@router.put("/{business_id}/approve", response_model=BusinessEnvelope)
def approve_business(
    business_id: int,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    business = business_service.get_business_or_404(db, business_id)
    approved = business_service.approve_business(db, business, admin)
    _notify_owner(background_tasks, approved, approved=True)
    return _envelope(approved, "Business approved successfully")


@router.put("/{business_id}/reject", response_model=BusinessEnvelope)
def reject_business(
    business_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[RejectRequest] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Reject a listing. ``rejectionReason`` must meet settings.min_rejection_reason_length."""
    business = business_service.get_business_or_404(db, business_id)
    reason = body.rejection_reason if body else None
    rejected = business_service.reject_business(db, business, reason, admin)
    _notify_owner(background_tasks, rejected, approved=False)
    return _envelope(rejected, "Business rejected")
