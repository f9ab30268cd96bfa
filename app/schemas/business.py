from datetime import datetime
from typing import Any, Optional

from pydantic import Field, model_validator

from app.schemas.common import CamelModel, PageMeta
from app.services.moderation import listing_status


class CategorySummary(CamelModel):
    id: int
    name: str
    slug: str
    icon: Optional[str] = None


class OwnerSummary(CamelModel):
    id: int
    name: Optional[str] = None


class BusinessBase(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=2000)
    category_id: int
    subcategory_id: Optional[int] = Field(default=None, alias="subCategoryId")
    address: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=50)
    zip_code: Optional[str] = Field(default=None, max_length=10)
    country: str = "USA"
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone: str = Field(min_length=1, max_length=20)
    email: Optional[str] = None
    website: Optional[str] = None
    hours: Optional[dict[str, Any]] = None
    images: Optional[list[str]] = None
    tags: Optional[list[str]] = None


class BusinessCreate(BusinessBase):
    is_public: bool = True


class BusinessUpdate(CamelModel):
    """Owner-editable fields. Moderation and rating fields are not accepted here."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=2000)
    category_id: Optional[int] = None
    subcategory_id: Optional[int] = Field(default=None, alias="subCategoryId")
    address: Optional[str] = Field(default=None, min_length=1, max_length=255)
    city: Optional[str] = Field(default=None, min_length=1, max_length=100)
    state: Optional[str] = Field(default=None, min_length=1, max_length=50)
    zip_code: Optional[str] = Field(default=None, max_length=10)
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone: Optional[str] = Field(default=None, min_length=1, max_length=20)
    email: Optional[str] = None
    website: Optional[str] = None
    hours: Optional[dict[str, Any]] = None
    images: Optional[list[str]] = None
    tags: Optional[list[str]] = None


class BusinessRead(BusinessBase):
    id: int
    slug: str
    owner_id: Optional[int] = None
    rating_average: float = 0
    rating_count: int = 0
    views: int = 0
    is_active: bool
    is_verified: bool
    is_public: bool
    is_featured: bool
    rejection_reason: Optional[str] = None
    rejected_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    resubmitted_at: Optional[datetime] = None
    claimed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    category: Optional[CategorySummary] = None
    owner: Optional[OwnerSummary] = None
    status: Optional[str] = None

    @model_validator(mode="after")
    def set_status(self) -> "BusinessRead":
        """Moderation state derived from is_active / rejection_reason."""
        self.status = listing_status(self).value
        return self


class BusinessListResponse(PageMeta):
    businesses: list[BusinessRead]


class BusinessEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    business: BusinessRead


class RejectRequest(CamelModel):
    # Optional so a missing reason reaches the length check (400) instead of schema validation
    rejection_reason: Optional[str] = None


class VisibilityUpdate(CamelModel):
    is_public: bool


class OwnerLinkRequest(CamelModel):
    owner_id: int
