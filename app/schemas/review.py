from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel, PageMeta


class ReviewerSummary(CamelModel):
    id: int
    name: Optional[str] = None
    avatar: Optional[str] = None


class ReviewedBusinessSummary(CamelModel):
    id: int
    name: str
    slug: str


class ReviewCreate(CamelModel):
    business_id: int
    rating: int = Field(ge=1, le=5)
    title: str = Field(min_length=1, max_length=100)
    comment: str = Field(min_length=1, max_length=1000)


class ReviewUpdate(CamelModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    comment: Optional[str] = Field(default=None, min_length=1, max_length=1000)


class ReviewRespond(CamelModel):
    comment: str = Field(min_length=1, max_length=1000)


class ReviewRead(CamelModel):
    id: int
    business_id: int
    user_id: int
    rating: int
    title: str
    comment: str
    helpful_count: int = 0
    is_approved: bool
    response_comment: Optional[str] = None
    responded_at: Optional[datetime] = None
    responded_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[ReviewerSummary] = None
    business: Optional[ReviewedBusinessSummary] = None


class ReviewEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    review: ReviewRead


class ReviewListResponse(PageMeta):
    reviews: list[ReviewRead]


class HelpfulResponse(CamelModel):
    success: bool = True
    message: str = "Review helpful status updated"
    helpful_count: int
