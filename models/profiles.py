from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index, UniqueConstraint, func
from sqlalchemy_serializer import SerializerMixin
from .base import db


class Profile(db.Model, SerializerMixin):
    """
    Discovery profile maintained by the profile service.

    The swipe engine only reads it: age/gender drive the candidate filter,
    coordinates feed the distance term and last_active_at orders the pool.
    """
    __tablename__ = "profiles"

    # Primary Key
    id = Column(Integer, primary_key=True)

    # Foreign Key to User
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    # Profile Information
    age = Column(Integer, nullable=True)
    gender = Column(String(20), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Timestamps
    last_active_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Indexes
    __table_args__ = (
        Index("idx_profile_age_gender", "age", "gender"),
        Index("idx_profile_last_active", "last_active_at"),
    )

    def __repr__(self):
        return f'<Profile {self.user_id}>'


class UserInterest(db.Model, SerializerMixin):
    __tablename__ = "user_interests"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    interest_name = Column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "interest_name", name="uq_user_interest"),
        Index("idx_interest_user", "user_id"),
    )
