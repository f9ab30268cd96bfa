from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.business import BusinessRead
from app.schemas.category import (
    CategoryCreate,
    CategoryDetailResponse,
    CategoryListResponse,
    CategoryRead,
    SubCategoryRead,
)
from app.services import categories as category_service

router = APIRouter(prefix="/categories", tags=["categories"])


def _with_count(category, count: int) -> CategoryRead:
    return CategoryRead.model_validate(category).model_copy(update={"business_count": count})


@router.get("", response_model=CategoryListResponse)
def list_categories(
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: Session = Depends(get_db),
):
    """Categories with the number of publicly visible businesses in each."""
    rows = category_service.list_categories(db, include_inactive=include_inactive)
    return CategoryListResponse(
        count=len(rows),
        categories=[_with_count(category, count) for category, count in rows],
    )


@router.get("/{category_id}", response_model=CategoryDetailResponse)
def get_category(category_id: int, db: Session = Depends(get_db)):
    """Category with its active subcategories and its top rated visible businesses."""
    category = category_service.get_category_or_404(db, category_id)
    subcategories = category_service.list_subcategories(db, category_id=category.id)
    businesses = category_service.top_businesses_in_category(db, category.id)
    return CategoryDetailResponse(
        category=_with_count(category, category_service.count_visible_in_category(db, category.id)),
        subcategories=[
            SubCategoryRead.model_validate(sub).model_copy(update={"business_count": count})
            for sub, count in subcategories
        ],
        businesses=[BusinessRead.model_validate(b) for b in businesses],
    )


@router.post("", response_model=CategoryRead, status_code=201)
def create_category(
    body: CategoryCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return category_service.create_category(db, body)
