"""
Business search filter composition.

Raw query inputs are parsed tolerantly into ``BusinessSearchParams`` and then
composed into a small predicate tree (``And`` / ``Or`` nodes over ``Condition``
leaves). The tree is plain data: ``to_sqlalchemy`` lowers it to a SQLAlchemy
clause for the database, ``evaluate`` applies it to an in-memory record.

Combination rules:
- search (name OR description) AND location (city/state OR-group)
- every other axis (category, subcategory, city, state, zip, rating, featured,
  owner) is ANDed with the rest; alternatives within one axis are ORed
- the visibility overlay, which depends on the viewer, is ANDed last
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Union

from sqlalchemy import and_, false, or_, true

from app.models.user import ROLE_ADMIN, ROLE_BUSINESS_OWNER

logger = logging.getLogger(__name__)

EQ = "eq"
IN = "in"
CONTAINS = "contains"  # case-insensitive substring
GTE = "gte"
IS_NULL = "is_null"  # value True -> IS NULL, False -> IS NOT NULL

_TRUTHY = {"true", "1", "yes", "on"}

# Primary keys are signed 32-bit INTEGER columns
MIN_ID = -(2**31)
MAX_ID = 2**31 - 1


@dataclass(frozen=True)
class Condition:
    field: str
    op: str
    value: Any = None


@dataclass(frozen=True)
class And:
    children: tuple = ()


@dataclass(frozen=True)
class Or:
    children: tuple = ()


Node = Union[Condition, And, Or]


def all_of(*nodes: Optional[Node]) -> Node:
    """AND the given nodes, flattening nested ANDs and skipping None."""
    children: list[Node] = []
    for node in nodes:
        if node is None:
            continue
        if isinstance(node, And):
            children.extend(node.children)
        else:
            children.append(node)
    if len(children) == 1:
        return children[0]
    return And(tuple(children))


def any_of(*nodes: Optional[Node]) -> Node:
    """OR the given nodes, flattening nested ORs and skipping None."""
    children: list[Node] = []
    for node in nodes:
        if node is None:
            continue
        if isinstance(node, Or):
            children.extend(node.children)
        else:
            children.append(node)
    if len(children) == 1:
        return children[0]
    return Or(tuple(children))


@dataclass(frozen=True)
class ViewerContext:
    """Who is asking. ``None`` in place of a ViewerContext means anonymous."""

    id: int
    role: str

    @property
    def sees_own_listings(self) -> bool:
        return self.role in (ROLE_BUSINESS_OWNER, ROLE_ADMIN)


# --- tolerant query parsing ---


def _raw_values(query: Mapping, *keys: str) -> list[str]:
    """
    Collect every raw value for the given keys.

    Accepts repeated keys (``a=1&a=2``), bracket keys (``a[]=1``) and
    comma-separated strings (``a=1,2``); works with Starlette QueryParams
    (``getlist``) and with plain dicts of strings or lists.
    """
    values: list[str] = []
    for key in keys:
        for name in (key, f"{key}[]"):
            if hasattr(query, "getlist"):
                raw = query.getlist(name)
            else:
                raw = query.get(name)
            if raw is None:
                continue
            if isinstance(raw, (list, tuple)):
                items = raw
            else:
                items = [raw]
            for item in items:
                if item is None:
                    continue
                values.extend(part.strip() for part in str(item).split(","))
    return [v for v in values if v]


def _parse_ints(values: Iterable[str]) -> list[int]:
    parsed = []
    for value in values:
        try:
            number = int(value)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-numeric id filter value {value!r}")
            continue
        if MIN_ID <= number <= MAX_ID:
            parsed.append(number)
        else:
            logger.debug(f"Ignoring out-of-range id filter value {value!r}")
    return list(dict.fromkeys(parsed))


def _parse_floats(values: Iterable[str]) -> list[float]:
    parsed = []
    for value in values:
        try:
            number = float(value)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-numeric rating filter value {value!r}")
            continue
        if math.isfinite(number):
            parsed.append(number)
    return parsed


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY


def _first(query: Mapping, key: str) -> Optional[str]:
    raw = query.get(key)
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else None
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


@dataclass
class BusinessSearchParams:
    search: Optional[str] = None
    location: Optional[str] = None
    category_ids: list[int] = field(default_factory=list)
    subcategory_ids: list[int] = field(default_factory=list)
    cities: list[str] = field(default_factory=list)
    states: list[str] = field(default_factory=list)
    zip_codes: list[str] = field(default_factory=list)
    ratings: list[float] = field(default_factory=list)
    featured: bool = False
    owner_id: Optional[int] = None
    public_only: bool = False

    @classmethod
    def from_query(cls, query: Mapping) -> "BusinessSearchParams":
        """Build params from raw query parameters. Garbage values are dropped, never rejected."""
        owner_ids = _parse_ints(_raw_values(query, "ownerId"))
        return cls(
            search=_first(query, "search"),
            location=_first(query, "location"),
            category_ids=_parse_ints(_raw_values(query, "category", "categories")),
            subcategory_ids=_parse_ints(_raw_values(query, "subCategory", "subCategories")),
            cities=list(dict.fromkeys(_raw_values(query, "city", "cities"))),
            states=list(dict.fromkeys(_raw_values(query, "state", "states"))),
            zip_codes=list(dict.fromkeys(_raw_values(query, "zipCode"))),
            # minRating is the legacy single-value form of ratings
            ratings=_parse_floats(_raw_values(query, "ratings", "minRating")),
            featured=_parse_bool(_first(query, "featured")),
            owner_id=owner_ids[0] if owner_ids else None,
            public_only=_parse_bool(_first(query, "publicOnly")),
        )

    @property
    def min_rating(self) -> Optional[float]:
        """Least restrictive selected threshold: {3, 5} means "3 stars and up"."""
        return min(self.ratings) if self.ratings else None


# --- composition ---


def visible_to_public() -> Node:
    return And((Condition("is_active", EQ, True), Condition("is_public", EQ, True)))


def search_condition(text: Optional[str]) -> Optional[Node]:
    if not text:
        return None
    return Or((Condition("name", CONTAINS, text), Condition("description", CONTAINS, text)))


def location_condition(text: Optional[str]) -> Optional[Node]:
    """
    "City, State" -> (city AND state) OR city OR state; remaining comma segments
    are joined into the state part. Without a comma the text is matched against
    city OR state.
    """
    if not text:
        return None
    text = text.strip()
    if "," not in text:
        return Or((Condition("city", CONTAINS, text), Condition("state", CONTAINS, text)))

    parts = [p.strip() for p in text.split(",") if p.strip()]
    if not parts:
        return None
    if len(parts) == 1:
        return Or((Condition("city", CONTAINS, parts[0]), Condition("state", CONTAINS, parts[0])))

    city_part = parts[0]
    state_part = " ".join(parts[1:])
    return Or((
        And((Condition("city", CONTAINS, city_part), Condition("state", CONTAINS, state_part))),
        Condition("city", CONTAINS, city_part),
        Condition("state", CONTAINS, state_part),
    ))


def visibility_overlay(params: BusinessSearchParams, viewer: Optional[ViewerContext]) -> Optional[Node]:
    if params.owner_id is not None:
        # Owner dashboard sees everything unless publicOnly asks for the public view
        return visible_to_public() if params.public_only else None
    if viewer is not None and viewer.sees_own_listings and not params.public_only:
        return Or((Condition("owner_id", EQ, viewer.id), visible_to_public()))
    return visible_to_public()


def compose_business_filter(
    params: BusinessSearchParams,
    viewer: Optional[ViewerContext] = None,
) -> Node:
    """Build the full predicate for a business search. Pure; never raises on input."""
    axes: list[Optional[Node]] = [
        search_condition(params.search),
        location_condition(params.location),
    ]
    if params.category_ids:
        axes.append(Condition("category_id", IN, tuple(params.category_ids)))
    if params.subcategory_ids:
        axes.append(Condition("subcategory_id", IN, tuple(params.subcategory_ids)))
    if params.cities:
        axes.append(any_of(*(Condition("city", CONTAINS, city) for city in params.cities)))
    if params.states:
        axes.append(Condition("state", IN, tuple(params.states)))
    if params.zip_codes:
        axes.append(Condition("zip_code", IN, tuple(params.zip_codes)))
    if params.min_rating is not None:
        axes.append(Condition("rating_average", GTE, params.min_rating))
    if params.featured:
        axes.append(Condition("is_featured", EQ, True))
    if params.owner_id is not None:
        axes.append(Condition("owner_id", EQ, params.owner_id))

    predicate = all_of(*axes)
    overlay = visibility_overlay(params, viewer)
    if overlay is not None:
        predicate = all_of(predicate, overlay)
    logger.debug(f"Composed business filter: {predicate}")
    return predicate


# --- lowering / evaluation ---


def to_sqlalchemy(node: Node, model):
    """Lower a predicate tree to a SQLAlchemy boolean clause over ``model``'s columns."""
    if isinstance(node, And):
        if not node.children:
            return true()
        return and_(*(to_sqlalchemy(child, model) for child in node.children))
    if isinstance(node, Or):
        if not node.children:
            return false()
        return or_(*(to_sqlalchemy(child, model) for child in node.children))

    column = getattr(model, node.field)
    if node.op == EQ:
        return column == node.value
    if node.op == IN:
        return column.in_(list(node.value))
    if node.op == CONTAINS:
        return column.icontains(node.value, autoescape=True)
    if node.op == GTE:
        return column >= node.value
    if node.op == IS_NULL:
        return column.is_(None) if node.value else column.is_not(None)
    raise ValueError(f"Unsupported filter operator: {node.op}")


def _field_value(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def evaluate(node: Node, record: Any) -> bool:
    """Apply a predicate tree to one record (ORM object or mapping)."""
    if isinstance(node, And):
        return all(evaluate(child, record) for child in node.children)
    if isinstance(node, Or):
        return any(evaluate(child, record) for child in node.children)

    actual = _field_value(record, node.field)
    if node.op == EQ:
        return actual == node.value
    if node.op == IN:
        return actual in node.value
    if node.op == CONTAINS:
        return actual is not None and str(node.value).lower() in str(actual).lower()
    if node.op == GTE:
        return actual is not None and actual >= node.value
    if node.op == IS_NULL:
        return (actual is None) == bool(node.value)
    raise ValueError(f"Unsupported filter operator: {node.op}")
