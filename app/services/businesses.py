"""Business listing use cases: search, detail, create, update, delete, and moderation actions."""

import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from app.core.errors import NotFoundError, ValidationError
from app.models.business import Business
from app.models.category import Category, SubCategory
from app.models.user import ROLE_ADMIN, User
from app.schemas.business import BusinessCreate, BusinessUpdate
from app.services import moderation
from app.services.activity import log_activity
from app.services.filters import (
    MAX_ID,
    BusinessSearchParams,
    Node,
    ViewerContext,
    all_of,
    compose_business_filter,
    evaluate,
    to_sqlalchemy,
    visible_to_public,
)
from app.services.pagination import Page, PageRequest, paginate
from app.services.ranking import order_by_clauses, order_chain
from app.services.slugs import unique_business_slug

logger = logging.getLogger(__name__)

# Explicit nulls for these are ignored on update
_REQUIRED_FIELDS = {"name", "description", "address", "city", "state", "country", "phone"}


def _listing_query(db: Session):
    return db.query(Business).options(
        selectinload(Business.category),
        selectinload(Business.owner),
    )


def query_businesses(
    db: Session,
    predicate: Node,
    sort: Optional[str],
    page_request: PageRequest,
) -> Page[Business]:
    query = (
        _listing_query(db)
        .filter(to_sqlalchemy(predicate, Business))
        .order_by(*order_by_clauses(order_chain(sort), Business))
    )
    return paginate(query, page_request)


def search_businesses(
    db: Session,
    params: BusinessSearchParams,
    viewer: Optional[ViewerContext],
    sort: Optional[str],
    page_request: PageRequest,
) -> Page[Business]:
    predicate = compose_business_filter(params, viewer)
    page = query_businesses(db, predicate, sort, page_request)
    logger.info(
        f"Business search: sort={sort or 'rating'}, page={page.page}, "
        f"limit={page.limit}, total={page.total}"
    )
    return page


def list_by_status(
    db: Session,
    status: Optional[moderation.ListingStatus],
    page_request: PageRequest,
) -> Page[Business]:
    """Admin moderation queue; all businesses when status is None."""
    predicate = moderation.status_condition(status) if status else all_of()
    return query_businesses(db, predicate, "newest", page_request)


def get_business_or_404(db: Session, business_id: int) -> Business:
    business = db.get(Business, business_id)
    if not business:
        raise NotFoundError("Business not found")
    return business


def is_publicly_visible(business: Business) -> bool:
    return evaluate(visible_to_public(), business)


def get_business_for_viewer(db: Session, id_or_slug: str, viewer: Optional[ViewerContext]) -> Business:
    """
    Fetch one business by id or slug and count the view.
    Hidden listings are only shown to their owner and admins; others get 404.
    """
    query = _listing_query(db)
    business = None
    # Unicode digits such as "²" pass isdigit() but are not ids
    if id_or_slug.isascii() and id_or_slug.isdigit():
        if int(id_or_slug) <= MAX_ID:
            business = query.filter(Business.id == int(id_or_slug)).first()
    else:
        business = query.filter(Business.slug == id_or_slug).first()
    if not business:
        raise NotFoundError("Business not found")

    if not is_publicly_visible(business):
        allowed = viewer is not None and (viewer.role == ROLE_ADMIN or business.owner_id == viewer.id)
        if not allowed:
            raise NotFoundError("Business not found")

    db.execute(update(Business).where(Business.id == business.id).values(views=Business.views + 1))
    db.commit()
    db.refresh(business)
    return business


def _validate_classification(db: Session, category_id: Optional[int], subcategory_id: Optional[int]) -> None:
    if category_id is None:
        raise ValidationError("Please select a valid category")
    category = db.get(Category, category_id)
    if not category:
        raise ValidationError("Selected category does not exist")
    if subcategory_id is not None:
        subcategory = db.get(SubCategory, subcategory_id)
        if not subcategory or subcategory.category_id != category.id:
            raise ValidationError("Selected subcategory does not belong to the category")


def create_business(db: Session, data: BusinessCreate, creator: Optional[User]) -> Business:
    """Create a listing in the pending state; anonymous submissions have no owner."""
    _validate_classification(db, data.category_id, data.subcategory_id)

    business = Business(**data.model_dump())
    business.slug = unique_business_slug(db, data.name)
    moderation.mark_submitted(business)
    if creator is not None:
        business.owner_id = creator.id
        moderation.promote_to_business_owner(creator)

    db.add(business)
    db.commit()
    db.refresh(business)
    logger.info(f"Business created: id={business.id}, slug={business.slug}, owner_id={business.owner_id}")

    log_activity(
        db,
        "business_submitted",
        f'New business "{business.name}" was submitted for approval',
        user_id=creator.id if creator else None,
        details={"businessId": business.id, "businessName": business.name},
    )
    return business


def update_business(db: Session, business: Business, data: BusinessUpdate, actor: User) -> Business:
    """
    Apply owner/admin edits. An owner editing a rejected listing resubmits it.
    A name change regenerates the slug.
    """
    moderation.ensure_can_manage(business, actor, "update")
    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field not in _REQUIRED_FIELDS
    }

    if "category_id" in changes or "subcategory_id" in changes:
        _validate_classification(
            db,
            changes.get("category_id", business.category_id),
            changes.get("subcategory_id", business.subcategory_id),
        )

    name_changed = "name" in changes and changes["name"] != business.name
    for field, value in changes.items():
        setattr(business, field, value)
    if name_changed:
        business.slug = unique_business_slug(db, business.name, exclude_id=business.id)

    resubmitted = False
    if business.owner_id == actor.id and moderation.listing_status(business) is moderation.ListingStatus.REJECTED:
        moderation.resubmit(business)
        resubmitted = True

    db.commit()
    db.refresh(business)
    logger.info(f"Business updated: id={business.id}, fields={sorted(changes)}, resubmitted={resubmitted}")

    if resubmitted:
        log_activity(
            db,
            "business_resubmitted",
            f'Business "{business.name}" was edited and resubmitted for approval',
            user_id=actor.id,
            details={"businessId": business.id},
        )
    return business


def delete_business(db: Session, business: Business, actor: User) -> None:
    moderation.ensure_can_manage(business, actor, "delete")
    business_id, name = business.id, business.name
    db.delete(business)
    db.commit()
    logger.info(f"Business deleted: id={business_id} by user id={actor.id}")
    log_activity(
        db,
        "business_deleted",
        f'Business "{name}" was deleted',
        user_id=actor.id,
        details={"businessId": business_id},
    )


def set_visibility(db: Session, business: Business, is_public: bool, actor: User) -> Business:
    moderation.ensure_can_manage(business, actor, "update")
    business.is_public = is_public
    db.commit()
    db.refresh(business)
    return business


def approve_business(db: Session, business: Business, admin: User) -> Business:
    moderation.approve(business)
    db.commit()
    db.refresh(business)
    log_activity(
        db,
        "business_approved",
        f'Business "{business.name}" was approved by admin',
        user_id=admin.id,
        details={"businessId": business.id, "businessName": business.name},
    )
    return business


def reject_business(db: Session, business: Business, reason: Optional[str], admin: User) -> Business:
    moderation.reject(business, reason)
    db.commit()
    db.refresh(business)
    log_activity(
        db,
        "business_rejected",
        f'Business "{business.name}" was rejected by admin',
        user_id=admin.id,
        details={"businessId": business.id, "rejectionReason": business.rejection_reason},
    )
    return business


def resubmit_business(db: Session, business: Business, actor: User) -> Business:
    moderation.ensure_can_manage(business, actor, "resubmit")
    moderation.resubmit(business)
    db.commit()
    db.refresh(business)
    log_activity(
        db,
        "business_resubmitted",
        f'Business "{business.name}" was resubmitted for approval',
        user_id=actor.id,
        details={"businessId": business.id},
    )
    return business


def claim_business(db: Session, business: Business, user: User) -> Business:
    moderation.claim(business, user)
    db.commit()
    db.refresh(business)
    log_activity(
        db,
        "business_claimed",
        f'Business "{business.name}" was claimed and awaits approval',
        user_id=user.id,
        details={"businessId": business.id},
    )
    return business


def link_business_owner(db: Session, business: Business, owner_id: int, admin: User) -> Business:
    owner = db.get(User, owner_id)
    if not owner:
        raise NotFoundError("User not found")
    moderation.link_owner(business, owner)
    db.commit()
    db.refresh(business)
    log_activity(
        db,
        "business_linked",
        f'Business "{business.name}" was linked to user {owner.id}',
        user_id=admin.id,
        details={"businessId": business.id, "ownerId": owner.id},
    )
    return business
