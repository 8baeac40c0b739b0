import logging
from typing import Callable, Iterable, List, Optional

from sqlalchemy import case, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased

from models import Swipe, SWIPE_KINDS, LIKE_KINDS
from services.clock import utcnow
from services.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def require_user_id(value, field: str = 'user_id') -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer", {'field': field})
    return value


class SwipeRepository:
    """Persistence for swipe decisions. Swipes are deactivated, never deleted."""

    def __init__(self, session, clock: Callable = utcnow):
        self.session = session
        self.clock = clock

    @staticmethod
    def validate(actor_id, target_id, kind):
        require_user_id(actor_id, 'actor_id')
        require_user_id(target_id, 'target_id')

        if actor_id == target_id:
            raise ValidationError("Cannot swipe on yourself")
        if kind not in SWIPE_KINDS:
            raise ValidationError(
                f"Invalid kind '{kind}'. Must be one of: {', '.join(SWIPE_KINDS)}",
                {'field': 'kind'}
            )

    def record(self, actor_id: int, target_id: int, kind: str, source_ip: Optional[str] = None) -> Swipe:
        """
        Insert a new active swipe.

        Raises:
            ValidationError: self-swipe, bad ids or an unknown kind
            ConflictError: an active swipe already exists for the pair
        """
        self.validate(actor_id, target_id, kind)

        if self.has_active(actor_id, target_id):
            raise ConflictError("You have already swiped on this user")

        swipe = Swipe(
            actor_id=actor_id,
            target_id=target_id,
            kind=kind,
            active=True,
            source_ip=source_ip,
            created_at=self.clock(),
        )
        try:
            with self.session.begin_nested():
                self.session.add(swipe)
        except IntegrityError:
            # Lost a race against an identical request
            if self.has_active(actor_id, target_id):
                raise ConflictError("You have already swiped on this user")
            raise

        logger.debug(f"Recorded swipe {swipe.id}: {actor_id} {kind} {target_id}")
        return swipe

    def undo_last(self, actor_id: int) -> Swipe:
        require_user_id(actor_id, 'actor_id')

        swipe = (
            self.session.query(Swipe)
            .filter(Swipe.actor_id == actor_id, Swipe.active.is_(True))
            .order_by(Swipe.created_at.desc(), Swipe.id.desc())
            .with_for_update()
            .first()
        )
        if swipe is None:
            raise NotFoundError("No swipe to undo")

        swipe.active = False
        swipe.undone_at = self.clock()
        self.session.flush()
        return swipe

    def has_active(self, actor_id: int, target_id: int, kinds: Optional[Iterable[str]] = None) -> bool:
        query = self.session.query(Swipe.id).filter(
            Swipe.actor_id == actor_id,
            Swipe.target_id == target_id,
            Swipe.active.is_(True),
        )
        if kinds:
            query = query.filter(Swipe.kind.in_(tuple(kinds)))
        return self.session.query(query.exists()).scalar()

    def active_targets(self, actor_id: int):
        """SELECT of every target the actor currently has a decision on."""
        decided = aliased(Swipe)
        return select(decided.target_id).where(
            decided.actor_id == actor_id,
            decided.active.is_(True),
        )

    def super_likers_among(self, user_id: int, actor_ids: Iterable[int]) -> set:
        actor_ids = list(actor_ids)
        if not actor_ids:
            return set()
        rows = self.session.query(Swipe.actor_id).filter(
            Swipe.target_id == user_id,
            Swipe.actor_id.in_(actor_ids),
            Swipe.kind == 'super_like',
            Swipe.active.is_(True),
        ).all()
        return {row.actor_id for row in rows}

    def history(self, actor_id: int, limit: int = 50, offset: int = 0) -> List[Swipe]:
        return (
            self.session.query(Swipe)
            .filter(Swipe.actor_id == actor_id, Swipe.active.is_(True))
            .order_by(Swipe.created_at.desc(), Swipe.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    def likers_of(self, user_id: int, limit: int = 20, offset: int = 0) -> List[Swipe]:
        """Likes received that the user has not answered yet, super likes first."""
        return (
            self.session.query(Swipe)
            .filter(
                Swipe.target_id == user_id,
                Swipe.active.is_(True),
                Swipe.kind.in_(LIKE_KINDS),
                Swipe.actor_id.not_in(self.active_targets(user_id)),
            )
            .order_by(
                case((Swipe.kind == 'super_like', 0), else_=1),
                Swipe.created_at.desc(),
                Swipe.id.desc(),
            )
            .limit(limit)
            .offset(offset)
            .all()
        )
