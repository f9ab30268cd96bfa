from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.db.base import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Business(Base):
    __tablename__ = "businesses"
    __table_args__ = (
        Index("ix_businesses_visibility", "is_active", "is_public"),
        Index("ix_businesses_city_state", "city", "state"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, index=True)
    slug = Column(String(150), nullable=False, unique=True)
    description = Column(Text, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    subcategory_id = Column(Integer, ForeignKey("subcategories.id"), nullable=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Location (free text; lat/long optional, not geocoded)
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(50), nullable=False)
    zip_code = Column(String(10), nullable=True)
    country = Column(String(50), nullable=False, default="USA")
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    phone = Column(String(20), nullable=False)
    email = Column(String(100), nullable=True)
    website = Column(String(255), nullable=True)
    hours = Column(JSONType, nullable=True)
    images = Column(JSONType, nullable=True)
    tags = Column(JSONType, nullable=True)

    # Derived from approved reviews; written only by the rating aggregator
    rating_average = Column(Numeric(3, 2, asdecimal=False), nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)

    # Moderation: pending = inactive without rejection; rejected = inactive with reason
    is_active = Column(Boolean, nullable=False, default=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_public = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    rejection_reason = Column(Text, nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    resubmitted_at = Column(DateTime(timezone=True), nullable=True)
    claimed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    category = relationship("Category", back_populates="businesses")
    subcategory = relationship("SubCategory", back_populates="businesses")
    owner = relationship("User", back_populates="businesses", foreign_keys=[owner_id])
    reviews = relationship("Review", back_populates="business", cascade="all, delete-orphan")
