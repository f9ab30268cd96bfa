from typing import Optional

from app.schemas.common import CamelModel


class CategorySuggestion(CamelModel):
    id: int
    name: str
    slug: str
    icon: Optional[str] = None


class BusinessSuggestion(CamelModel):
    id: int
    name: str
    slug: str
    city: Optional[str] = None
    state: Optional[str] = None


class Suggestions(CamelModel):
    categories: list[CategorySuggestion] = []
    businesses: list[BusinessSuggestion] = []


class SuggestionsResponse(CamelModel):
    success: bool = True
    suggestions: Suggestions


class LocationSuggestionsResponse(CamelModel):
    success: bool = True
    suggestions: list[str] = []
