"""Type-ahead suggestions for the search box and the location picker."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.models.business import Business
from app.models.category import Category
from app.services.filters import CONTAINS, Condition, all_of, any_of, to_sqlalchemy, visible_to_public

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_CATEGORY_SUGGESTIONS = 5
MAX_BUSINESS_SUGGESTIONS = 8
MAX_LOCATION_SUGGESTIONS = 10


def _usable(q: Optional[str]) -> Optional[str]:
    text = (q or "").strip()
    return text if len(text) >= MIN_QUERY_LENGTH else None


def suggest(db: Session, q: Optional[str]) -> tuple[list[Category], list[Business]]:
    """Active categories and visible businesses whose name contains ``q``."""
    text = _usable(q)
    if text is None:
        return [], []

    categories = (
        db.query(Category)
        .filter(Category.is_active.is_(True), to_sqlalchemy(Condition("name", CONTAINS, text), Category))
        .order_by(Category.sort_order.asc(), Category.name.asc())
        .limit(MAX_CATEGORY_SUGGESTIONS)
        .all()
    )
    predicate = all_of(Condition("name", CONTAINS, text), visible_to_public())
    businesses = (
        db.query(Business)
        .filter(to_sqlalchemy(predicate, Business))
        .order_by(Business.rating_average.desc(), Business.name.asc(), Business.id.asc())
        .limit(MAX_BUSINESS_SUGGESTIONS)
        .all()
    )
    logger.debug(f"Suggestions for q={text!r}: {len(categories)} categories, {len(businesses)} businesses")
    return categories, businesses


def suggest_locations(db: Session, q: Optional[str]) -> list[str]:
    """
    Distinct "City, State" pairs among visible businesses matching ``q`` on
    city or state. Cities starting with ``q`` come first, then alphabetical.
    """
    text = _usable(q)
    if text is None:
        return []

    predicate = all_of(
        any_of(Condition("city", CONTAINS, text), Condition("state", CONTAINS, text)),
        visible_to_public(),
    )
    rows = (
        db.query(Business.city, Business.state)
        .filter(to_sqlalchemy(predicate, Business))
        .distinct()
        .all()
    )
    prefix = text.lower()
    pairs = sorted(
        {(city, state) for city, state in rows if city},
        key=lambda pair: (not pair[0].lower().startswith(prefix), pair[0].lower(), (pair[1] or "").lower()),
    )
    return [f"{city}, {state}" if state else city for city, state in pairs[:MAX_LOCATION_SUGGESTIONS]]
