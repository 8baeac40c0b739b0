from sqlalchemy import Column, Integer, String, Float, ForeignKey
from sqlalchemy_serializer import SerializerMixin
from .base import db


class Preference(db.Model, SerializerMixin):
    """Discovery preferences; 'any' as preferred_gender disables that filter."""
    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    min_age = Column(Integer, nullable=False, default=18)
    max_age = Column(Integer, nullable=False, default=99)
    preferred_gender = Column(String(20), nullable=False, default='any')
    max_distance = Column(Float, nullable=True)  # miles

    def __repr__(self):
        return f'<Preference {self.user_id} {self.min_age}-{self.max_age}>'
