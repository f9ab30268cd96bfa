from app.schemas.business import (
    BusinessCreate,
    BusinessEnvelope,
    BusinessListResponse,
    BusinessRead,
    BusinessUpdate,
)
from app.schemas.category import CategoryCreate, CategoryRead, SubCategoryCreate, SubCategoryRead
from app.schemas.review import ReviewCreate, ReviewRead, ReviewUpdate
from app.schemas.user import ActivityRead, UserRead

__all__ = [
    "BusinessCreate",
    "BusinessEnvelope",
    "BusinessListResponse",
    "BusinessRead",
    "BusinessUpdate",
    "CategoryCreate",
    "CategoryRead",
    "SubCategoryCreate",
    "SubCategoryRead",
    "ReviewCreate",
    "ReviewRead",
    "ReviewUpdate",
    "ActivityRead",
    "UserRead",
]
