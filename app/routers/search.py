from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import get_viewer_context
from app.db.session import get_db
from app.routers.businesses import business_page_response
from app.schemas.business import BusinessListResponse
from app.schemas.search import (
    BusinessSuggestion,
    CategorySuggestion,
    LocationSuggestionsResponse,
    Suggestions,
    SuggestionsResponse,
)
from app.services import businesses as business_service
from app.services import search as search_service
from app.services.filters import BusinessSearchParams, ViewerContext
from app.services.pagination import PageRequest

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=BusinessListResponse)
def search(
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    city: Optional[str] = Query(None, description="City, \"City, State\" or state"),
    state: Optional[str] = Query(None),
    min_rating: Optional[str] = Query(None, alias="minRating"),
    sort: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    viewer: Optional[ViewerContext] = Depends(get_viewer_context),
    db: Session = Depends(get_db),
):
    """
    Keyword search for the search page. Same engine as GET /businesses:
    ``q`` matches name or description, ``city`` is parsed like ``location``,
    and ``state`` only applies when no city is given.
    """
    params = BusinessSearchParams.from_query({
        "search": q,
        "location": city,
        "category": category,
        "state": None if city else state,
        "minRating": min_rating,
    })
    page_request = PageRequest.from_raw(page, limit)
    return business_page_response(business_service.search_businesses(db, params, viewer, sort, page_request))


@router.get("/suggestions", response_model=SuggestionsResponse)
def get_suggestions(q: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Type-ahead for the main search box. Queries shorter than 2 characters return nothing."""
    categories, businesses = search_service.suggest(db, q)
    return SuggestionsResponse(
        suggestions=Suggestions(
            categories=[CategorySuggestion.model_validate(c) for c in categories],
            businesses=[BusinessSuggestion.model_validate(b) for b in businesses],
        )
    )


@router.get("/location-suggestions", response_model=LocationSuggestionsResponse)
def get_location_suggestions(q: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Location picker suggestions ("City, State") drawn from visible listings."""
    return LocationSuggestionsResponse(suggestions=search_service.suggest_locations(db, q))
