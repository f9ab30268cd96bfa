from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.models.business import JSONType


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        # One review per user per business
        UniqueConstraint("business_id", "user_id", name="uq_reviews_business_user"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_id = Column(Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    title = Column(String(100), nullable=False)
    comment = Column(Text, nullable=False)
    helpful_count = Column(Integer, nullable=False, default=0)
    helpful_by = Column(JSONType, nullable=True)
    is_approved = Column(Boolean, nullable=False, default=True)
    is_reported = Column(Boolean, nullable=False, default=False)
    # Owner response
    response_comment = Column(Text, nullable=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    responded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    business = relationship("Business", back_populates="reviews")
    user = relationship("User", back_populates="reviews", foreign_keys=[user_id])
