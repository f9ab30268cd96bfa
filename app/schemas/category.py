from typing import Optional

from pydantic import Field

from app.schemas.business import BusinessRead
from app.schemas.common import CamelModel


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    icon: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0


class CategoryRead(CamelModel):
    id: int
    name: str
    slug: str
    icon: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    sort_order: int = 0
    # Derived per request from visible businesses; never stored
    business_count: int = 0


class SubCategoryCreate(CategoryCreate):
    category_id: int


class SubCategoryRead(CategoryRead):
    category_id: int


class CategoryListResponse(CamelModel):
    success: bool = True
    count: int
    categories: list[CategoryRead]


class CategoryDetailResponse(CamelModel):
    success: bool = True
    category: CategoryRead
    subcategories: list[SubCategoryRead] = []
    businesses: list[BusinessRead] = []


class SubCategoryListResponse(CamelModel):
    success: bool = True
    count: int
    subcategories: list[SubCategoryRead]
