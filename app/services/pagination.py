import math
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy.orm import Query

from app.core.config import settings

T = TypeVar("T")

# OFFSET is bound as a signed 64-bit integer
MAX_OFFSET = 2**63 - 1


def _positive_int(value: Any) -> Optional[int]:
    """Parse a positive integer; anything else (None, "abc", "0", "-3", "2.5") is None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_raw(
        cls,
        page: Any = None,
        limit: Any = None,
        default_limit: Optional[int] = None,
        max_limit: Optional[int] = None,
    ) -> "PageRequest":
        """
        Build a page request from raw query values.
        Invalid page -> 1; invalid or non-positive limit -> default_limit;
        limits above max_limit are clamped; pages beyond any addressable offset
        are clamped too and come back empty.
        """
        default_limit = default_limit or settings.default_page_size
        max_limit = max_limit or settings.max_page_size
        resolved_limit = min(_positive_int(limit) or default_limit, max_limit)
        # Any page this far out is past the last row anyway
        max_page = MAX_OFFSET // resolved_limit + 1
        return cls(
            page=min(_positive_int(page) or 1, max_page),
            limit=resolved_limit,
        )


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def paginate(query: Query, page_request: PageRequest) -> Page:
    """Count the full result, then fetch one page. Pages past the end are empty, not errors."""
    total = query.order_by(None).count()
    items = query.offset(page_request.offset).limit(page_request.limit).all()
    return Page(items=items, total=total, page=page_request.page, limit=page_request.limit)
