from .base import db
from sqlalchemy_serializer import SerializerMixin

COUNTER_FIELDS = (
    'total_swipes',
    'likes_given',
    'passes_given',
    'super_likes_given',
    'likes_received',
    'passes_received',
    'super_likes_received',
    'matches_created',
)


class DailyAnalytics(db.Model, SerializerMixin):
    __tablename__ = "swipe_analytics"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    date = db.Column(db.Date, nullable=False)

    total_swipes = db.Column(db.Integer, nullable=False, default=0)
    likes_given = db.Column(db.Integer, nullable=False, default=0)
    passes_given = db.Column(db.Integer, nullable=False, default=0)
    super_likes_given = db.Column(db.Integer, nullable=False, default=0)
    likes_received = db.Column(db.Integer, nullable=False, default=0)
    passes_received = db.Column(db.Integer, nullable=False, default=0)
    super_likes_received = db.Column(db.Integer, nullable=False, default=0)
    matches_created = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'date', name='uq_daily_stats'),
        db.Index('idx_analytics_user_date', 'user_id', 'date'),
    )
