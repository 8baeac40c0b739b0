# models/users.py
from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy_serializer import SerializerMixin
from .base import db


class User(db.Model, SerializerMixin):
    """Account row owned by the identity service; read-only here."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False, index=True)

    created_at = Column(DateTime, server_default=func.now(), index=True)

    def __repr__(self):
        return f'<User {self.id}>'
