import re
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.business import Business

_NON_WORD = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def slugify(name: str) -> str:
    """Lowercase, strip punctuation, and hyphenate a display name."""
    slug = _NON_WORD.sub("", (name or "").lower().strip())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def business_slug(name: str, now: Optional[datetime] = None) -> str:
    """Slug suffixed with epoch milliseconds, e.g. ``joes-diner-1718000000000``."""
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    base = slugify(name) or "business"
    return f"{base}-{millis}"


def unique_business_slug(db: Session, name: str, exclude_id: Optional[int] = None) -> str:
    """Timestamped slug; a numeric suffix is added if the same millisecond is already taken."""
    base = business_slug(name)
    candidate = base
    attempt = 1
    while True:
        stmt = select(Business.id).where(Business.slug == candidate)
        if exclude_id is not None:
            stmt = stmt.where(Business.id != exclude_id)
        if db.execute(stmt).first() is None:
            return candidate
        attempt += 1
        candidate = f"{base}-{attempt}"
