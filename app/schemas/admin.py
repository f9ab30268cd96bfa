from app.schemas.business import BusinessRead
from app.schemas.common import CamelModel
from app.schemas.review import ReviewRead
from app.schemas.user import UserRead


class DashboardStatsRead(CamelModel):
    users: int
    businesses: int
    active_businesses: int
    pending_businesses: int
    rejected_businesses: int
    reviews: int
    pending_reviews: int
    categories: int
    recent_users: list[UserRead] = []
    recent_businesses: list[BusinessRead] = []
    recent_reviews: list[ReviewRead] = []


class DashboardStatsResponse(CamelModel):
    success: bool = True
    stats: DashboardStatsRead
