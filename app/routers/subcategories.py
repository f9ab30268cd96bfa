from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import require_admin
from app.db.session import get_db
from app.models.user import User
from app.schemas.category import SubCategoryCreate, SubCategoryListResponse, SubCategoryRead
from app.services import categories as category_service

router = APIRouter(prefix="/subcategories", tags=["categories"])


@router.get("", response_model=SubCategoryListResponse)
def list_subcategories(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: Session = Depends(get_db),
):
    rows = category_service.list_subcategories(db, category_id=category_id, include_inactive=include_inactive)
    return SubCategoryListResponse(
        count=len(rows),
        subcategories=[
            SubCategoryRead.model_validate(sub).model_copy(update={"business_count": count})
            for sub, count in rows
        ],
    )


@router.post("", response_model=SubCategoryRead, status_code=201)
def create_subcategory(
    body: SubCategoryCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return category_service.create_subcategory(db, body)
