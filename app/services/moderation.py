"""
Listing moderation lifecycle.

States are derived from the business row:

    pending   is_active = false, no rejection reason
    active    is_active = true
    rejected  is_active = false, rejection_reason set

Transitions (functions below mutate the ORM object; callers commit):

    create               -> pending
    pending   --approve-> active          (admin)
    rejected  --approve-> active          (admin override, clears rejection)
    pending   --reject--> rejected        (admin, reason >= min length)
    active    --reject--> rejected        (admin, reason >= min length)
    rejected  --resubmit-> pending        (owner or admin; also on owner edit)
    unowned   --claim---> owned, pending  (any authenticated user)
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from app.core.config import settings
from app.core.errors import PermissionDeniedError, ValidationError
from app.models.business import Business
from app.models.user import ROLE_BUSINESS_OWNER, ROLE_USER, User
from app.services.filters import EQ, IS_NULL, And, Condition, Node

logger = logging.getLogger(__name__)


class ListingStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"


def listing_status(business: Business) -> ListingStatus:
    if business.is_active:
        return ListingStatus.ACTIVE
    if business.rejection_reason:
        return ListingStatus.REJECTED
    return ListingStatus.PENDING


def status_condition(status: ListingStatus) -> Node:
    """Predicate selecting businesses in the given moderation state."""
    if status is ListingStatus.ACTIVE:
        return Condition("is_active", EQ, True)
    if status is ListingStatus.REJECTED:
        return And((Condition("is_active", EQ, False), Condition("rejection_reason", IS_NULL, False)))
    return And((Condition("is_active", EQ, False), Condition("rejection_reason", IS_NULL, True)))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- authorization ---


def can_manage(business: Business, actor: Optional[User]) -> bool:
    if actor is None:
        return False
    if actor.is_admin:
        return True
    return business.owner_id is not None and business.owner_id == actor.id


def ensure_can_manage(business: Business, actor: Optional[User], action: str = "modify") -> None:
    if not can_manage(business, actor):
        raise PermissionDeniedError(f"Not authorized to {action} this business")


def promote_to_business_owner(user: User) -> bool:
    """Plain users become business owners; admins and existing owners are left alone."""
    if user.role in (None, ROLE_USER):
        user.role = ROLE_BUSINESS_OWNER
        logger.info(f"Promoted user id={user.id} to {ROLE_BUSINESS_OWNER}")
        return True
    return False


# --- transitions ---


def mark_submitted(business: Business) -> None:
    """Entry transition: every new listing starts pending, whoever creates it."""
    business.is_active = False
    business.is_verified = False
    business.rejection_reason = None
    business.rejected_at = None
    business.approved_at = None


def approve(business: Business, now: Optional[datetime] = None) -> None:
    status = listing_status(business)
    if status is ListingStatus.ACTIVE:
        raise ValidationError("Business is already approved")
    business.is_active = True
    business.is_verified = True
    business.approved_at = now or _utcnow()
    if status is ListingStatus.REJECTED:
        business.rejection_reason = None
        business.rejected_at = None
    logger.info(f"Business id={business.id} approved (was {status.value})")


def validate_rejection_reason(reason: Optional[str]) -> str:
    text = (reason or "").strip()
    minimum = settings.min_rejection_reason_length
    if len(text) < minimum:
        raise ValidationError(f"Rejection reason must be at least {minimum} characters")
    return text


def reject(business: Business, reason: Optional[str], now: Optional[datetime] = None) -> None:
    text = validate_rejection_reason(reason)
    status = listing_status(business)
    if status is ListingStatus.REJECTED:
        raise ValidationError("Business is already rejected")
    business.is_active = False
    business.is_verified = False
    business.approved_at = None
    business.rejection_reason = text
    business.rejected_at = now or _utcnow()
    logger.info(f"Business id={business.id} rejected (was {status.value})")


def resubmit(business: Business, now: Optional[datetime] = None) -> None:
    if listing_status(business) is not ListingStatus.REJECTED:
        raise ValidationError("Only rejected businesses can be resubmitted")
    business.rejection_reason = None
    business.rejected_at = None
    business.is_active = False
    business.resubmitted_at = now or _utcnow()
    logger.info(f"Business id={business.id} resubmitted for review")


def claim(business: Business, user: User, now: Optional[datetime] = None) -> None:
    """Assign an unowned listing to ``user``; the listing always goes back to review."""
    if business.owner_id is not None:
        raise ValidationError("This business has already been claimed")
    business.owner_id = user.id
    business.claimed_at = now or _utcnow()
    business.is_active = False
    promote_to_business_owner(user)
    logger.info(f"Business id={business.id} claimed by user id={user.id}")


def link_owner(business: Business, user: User, now: Optional[datetime] = None) -> None:
    """Admin assignment of an owner. Listing status is unchanged."""
    business.owner_id = user.id
    business.claimed_at = now or _utcnow()
    promote_to_business_owner(user)
    logger.info(f"Business id={business.id} linked to user id={user.id}")
