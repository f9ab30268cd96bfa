"""HTTP error taxonomy shared by services and routers.

Services raise these directly; FastAPI renders them as ``{"detail": ...}``
with the matching status code.
"""

import logging
from typing import Optional

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    """Base class for application errors surfaced to the caller."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)
        logger.info(f"{type(self).__name__}: {detail} (status={status_code})")


class ValidationError(AppError):
    """Malformed or rule-violating input (duplicate review, short rejection reason, ...)."""

    def __init__(self, detail: Optional[str] = "Invalid input"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class UnauthorizedError(AppError):
    def __init__(self, detail: Optional[str] = "Not authorized to access this route"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail)


class PermissionDeniedError(AppError):
    """Caller is authenticated but not the owner/admin the action requires."""

    def __init__(self, detail: Optional[str] = "Not authorized to perform this action"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail)


class NotFoundError(AppError):
    def __init__(self, detail: Optional[str] = "Item not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)
