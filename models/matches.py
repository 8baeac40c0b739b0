from .base import db
from sqlalchemy_serializer import SerializerMixin
from sqlalchemy import CheckConstraint

MATCH_STATUSES = ('active', 'unmatched', 'blocked')


class Match(db.Model, SerializerMixin):
    __tablename__ = "matches"

    id = db.Column(db.Integer, primary_key=True)
    low_user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    high_user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    status = db.Column(db.Enum(*MATCH_STATUSES, name='match_status'), nullable=False, default='active')
    matched_at = db.Column(db.DateTime, nullable=False)
    last_activity_at = db.Column(db.DateTime, nullable=True)

    # One row per unordered pair, always stored low/high
    __table_args__ = (
        db.UniqueConstraint('low_user_id', 'high_user_id', name='uq_match_pair'),
        CheckConstraint('low_user_id < high_user_id', name='check_user_order'),
        db.Index('idx_match_low_status', 'low_user_id', 'status', 'matched_at'),
        db.Index('idx_match_high_status', 'high_user_id', 'status', 'matched_at'),
    )

    serialize_only = ('id', 'low_user_id', 'high_user_id', 'status', 'matched_at', 'last_activity_at')

    def other_user(self, user_id):
        return self.high_user_id if self.low_user_id == user_id else self.low_user_id

    def __repr__(self):
        return f'<Match {self.low_user_id}:{self.high_user_id} {self.status}>'
