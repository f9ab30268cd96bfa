from datetime import datetime
from typing import Any, Optional

from app.schemas.common import CamelModel, PageMeta


class UserRead(CamelModel):
    id: int
    external_auth_provider: Optional[str] = None
    external_auth_uid: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    role: str
    is_active: bool = True
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ActivityRead(CamelModel):
    id: int
    type: str
    description: str
    user_id: Optional[int] = None
    details: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None


class ActivityListResponse(PageMeta):
    activities: list[ActivityRead]
