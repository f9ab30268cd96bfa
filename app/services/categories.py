"""Category and subcategory reads with business counts derived per request."""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.business import Business
from app.models.category import Category, SubCategory
from app.schemas.category import CategoryCreate, SubCategoryCreate
from app.services.businesses import query_businesses
from app.services.filters import BusinessSearchParams, compose_business_filter, to_sqlalchemy, visible_to_public
from app.services.pagination import PageRequest
from app.services.slugs import slugify

logger = logging.getLogger(__name__)


def _visible_counts(db: Session, column) -> dict[int, int]:
    """Map of <column value> -> number of publicly visible businesses."""
    rows = db.execute(
        select(column, func.count(Business.id))
        .where(to_sqlalchemy(visible_to_public(), Business), column.is_not(None))
        .group_by(column)
    ).all()
    return {key: count for key, count in rows}


def list_categories(db: Session, include_inactive: bool = False) -> list[tuple[Category, int]]:
    query = db.query(Category)
    if not include_inactive:
        query = query.filter(Category.is_active.is_(True))
    categories = query.order_by(Category.sort_order.asc(), Category.name.asc()).all()
    counts = _visible_counts(db, Business.category_id)
    return [(category, counts.get(category.id, 0)) for category in categories]


def list_subcategories(
    db: Session,
    category_id: Optional[int] = None,
    include_inactive: bool = False,
) -> list[tuple[SubCategory, int]]:
    query = db.query(SubCategory)
    if not include_inactive:
        query = query.filter(SubCategory.is_active.is_(True))
    if category_id is not None:
        query = query.filter(SubCategory.category_id == category_id)
    subcategories = query.order_by(SubCategory.sort_order.asc(), SubCategory.name.asc()).all()
    counts = _visible_counts(db, Business.subcategory_id)
    return [(subcategory, counts.get(subcategory.id, 0)) for subcategory in subcategories]


def get_category_or_404(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")
    return category


def count_visible_in_category(db: Session, category_id: int) -> int:
    return _visible_counts(db, Business.category_id).get(category_id, 0)


def create_category(db: Session, data: CategoryCreate) -> Category:
    slug = slugify(data.name)
    duplicate = db.query(Category.id).filter((Category.name == data.name) | (Category.slug == slug)).first()
    if duplicate:
        raise ValidationError("A category with this name already exists")
    category = Category(**data.model_dump(exclude_none=True), slug=slug)
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info(f"Category created: id={category.id}, slug={category.slug}")
    return category


def create_subcategory(db: Session, data: SubCategoryCreate) -> SubCategory:
    if not db.get(Category, data.category_id):
        raise ValidationError("Selected category does not exist")
    slug = slugify(data.name)
    duplicate = (
        db.query(SubCategory.id)
        .filter(SubCategory.category_id == data.category_id, SubCategory.slug == slug)
        .first()
    )
    if duplicate:
        raise ValidationError("A subcategory with this name already exists in the category")
    subcategory = SubCategory(**data.model_dump(exclude_none=True), slug=slug)
    db.add(subcategory)
    db.commit()
    db.refresh(subcategory)
    logger.info(f"Subcategory created: id={subcategory.id}, category_id={subcategory.category_id}")
    return subcategory


def top_businesses_in_category(db: Session, category_id: int, limit: int = 10) -> list[Business]:
    """Highest rated publicly visible listings of a category."""
    predicate = compose_business_filter(BusinessSearchParams(category_ids=[category_id]), None)
    return query_businesses(db, predicate, "rating", PageRequest(page=1, limit=limit)).items
