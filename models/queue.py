from .base import db
from sqlalchemy_serializer import SerializerMixin


class QueueEntry(db.Model, SerializerMixin):
    __tablename__ = "match_queue"

    id = db.Column(db.Integer, primary_key=True)
    viewer_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    candidate_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    compatibility_score = db.Column(db.Float, nullable=False, default=0.5)
    priority = db.Column(db.Integer, nullable=False, default=0)
    last_shown_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    __table_args__ = (
        db.UniqueConstraint('viewer_id', 'candidate_id', name='uq_queue_entry'),
        db.CheckConstraint('viewer_id != candidate_id', name='no_self_candidate'),
        db.Index('idx_queue_viewer_score', 'viewer_id', 'compatibility_score', 'priority'),
    )

    serialize_only = ('candidate_id', 'compatibility_score', 'priority', 'last_shown_at')
