"""Sort directives for business listings.

Every chain ends with the primary key so rows that tie on all leading keys
still come back in one fixed order, and pages never overlap.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class OrderKey:
    field: str
    descending: bool = False


DEFAULT_SORT = "rating"

SORT_CHAINS: dict[str, tuple[OrderKey, ...]] = {
    "rating": (
        OrderKey("is_featured", descending=True),
        OrderKey("rating_average", descending=True),
        OrderKey("rating_count", descending=True),
        OrderKey("created_at", descending=True),
    ),
    "name": (OrderKey("name"),),
    "views": (OrderKey("views", descending=True),),
    "newest": (OrderKey("created_at", descending=True),),
    "oldest": (OrderKey("created_at"),),
}


def normalize_sort(sort: Optional[str]) -> str:
    """Unknown or missing directives fall back to the default ranking."""
    key = (sort or "").strip().lower()
    return key if key in SORT_CHAINS else DEFAULT_SORT


def order_chain(sort: Optional[str]) -> tuple[OrderKey, ...]:
    chain = SORT_CHAINS[normalize_sort(sort)]
    return chain + (OrderKey("id", descending=chain[-1].descending),)


def order_by_clauses(chain: tuple[OrderKey, ...], model) -> list:
    clauses = []
    for key in chain:
        column = getattr(model, key.field)
        clauses.append(column.desc() if key.descending else column.asc())
    return clauses
