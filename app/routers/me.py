import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import get_current_user, viewer_context
from app.db.session import get_db
from app.models.user import User
from app.routers.businesses import business_page_response
from app.schemas.business import BusinessListResponse
from app.schemas.user import UserRead
from app.services import businesses as business_service
from app.services.filters import BusinessSearchParams
from app.services.pagination import PageRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/me", tags=["me"])


@router.get("", response_model=UserRead)
def get_me(current_user: User = Depends(get_current_user)):
    """
    Get the authenticated user's profile, including role.
    The user row is resolved (and created on first sign-in) by get_current_user.
    """
    return UserRead.model_validate(current_user)


@router.get("/businesses", response_model=BusinessListResponse)
def get_my_businesses(
    sort: Optional[str] = Query("newest"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Owner dashboard: every listing the caller owns, whatever its moderation
    state or visibility.
    """
    params = BusinessSearchParams(owner_id=current_user.id)
    page_request = PageRequest.from_raw(page, limit)
    logger.info(f"Listing businesses for owner id={current_user.id}")
    result = business_service.search_businesses(db, params, viewer_context(current_user), sort, page_request)
    return business_page_response(result)
