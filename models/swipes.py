from .base import db
from sqlalchemy_serializer import SerializerMixin

SWIPE_KINDS = ('like', 'pass', 'super_like')
LIKE_KINDS = ('like', 'super_like')


class Swipe(db.Model, SerializerMixin):
    __tablename__ = "swipes"

    id = db.Column(db.Integer, primary_key=True)
    actor_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    target_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    kind = db.Column(db.Enum(*SWIPE_KINDS, name='swipe_kind'), nullable=False)
    active = db.Column(db.Boolean, nullable=False, default=True)
    source_ip = db.Column(db.String(45), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False)
    undone_at = db.Column(db.DateTime, nullable=True)

    # Undone swipes stay around for audit, so uniqueness only covers active rows
    __table_args__ = (
        db.CheckConstraint('actor_id != target_id', name='no_self_swipe'),
        db.Index(
            'uq_active_swipe', 'actor_id', 'target_id',
            unique=True,
            postgresql_where=db.text('active'),
            sqlite_where=db.text('active = 1'),
        ),
        db.Index('idx_swipe_actor_created', 'actor_id', 'created_at'),
        db.Index('idx_swipe_target_kind', 'target_id', 'kind'),
    )

    serialize_only = ('id', 'actor_id', 'target_id', 'kind', 'active', 'source_ip', 'created_at', 'undone_at')

    @property
    def is_like(self):
        return self.kind in LIKE_KINDS

    def __repr__(self):
        return f'<Swipe {self.id} {self.actor_id}->{self.target_id} {self.kind}>'
