from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from app.db.base import Base

ROLE_USER = "user"
ROLE_BUSINESS_OWNER = "business_owner"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_BUSINESS_OWNER, ROLE_ADMIN)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # External auth: 1:1 with the identity provider account (JWT sub)
    external_auth_provider = Column(String, nullable=True)  # e.g. "google", "email"
    external_auth_uid = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=True, index=True)
    name = Column(String(50), nullable=True)
    role = Column(String(20), nullable=False, default=ROLE_USER)
    is_active = Column(Boolean, nullable=False, default=True)
    avatar = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    businesses = relationship("Business", back_populates="owner", foreign_keys="Business.owner_id")
    reviews = relationship(
        "Review", back_populates="user", foreign_keys="Review.user_id", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
