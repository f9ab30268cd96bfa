from app.models.user import User
from app.models.category import Category, SubCategory
from app.models.business import Business
from app.models.review import Review
from app.models.activity import Activity

__all__ = [
    "User",
    "Category",
    "SubCategory",
    "Business",
    "Review",
    "Activity",
]
