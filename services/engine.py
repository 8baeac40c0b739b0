import logging
from typing import Callable, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db, User, MATCH_STATUSES
from services.analytics import AnalyticsAggregator
from services.clock import utcnow
from services.errors import EngineError, NotFoundError, Result, StorageError, ValidationError
from services.events import EventBuffer, swipe_undone
from services.matches import MatchDetector, MatchRepository
from services.queue import DEFAULT_QUEUE_SIZE, QueueBuilder
from services.swipes import SwipeRepository, require_user_id
from utils.matching import DEFAULT_MAX_DISTANCE

logger = logging.getLogger(__name__)


def _require_limit(value, field: str = 'limit') -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer", {'field': field})
    return value


class SwipeMatchEngine:
    """
    Entry point for swipes, undo, discovery queues, matches and analytics.

    Built per request around an explicit session. Every operation returns a
    Result; only storage faults are logged as errors, and those reach the
    caller as an opaque StorageError.
    """

    def __init__(self, session, clock: Callable = utcnow, events: Optional[EventBuffer] = None,
                 default_max_distance: float = DEFAULT_MAX_DISTANCE):
        self.session = session
        self.events = events if events is not None else EventBuffer()

        self.swipes = SwipeRepository(session, clock)
        self.matches = MatchRepository(session, clock)
        self.analytics = AnalyticsAggregator(session, clock)
        self.detector = MatchDetector(self.swipes, self.matches, self.analytics, self.events)
        self.queue = QueueBuilder(session, self.swipes, clock, default_max_distance)

    def _run(self, operation: Callable, description: str, commit: bool = True) -> Result:
        try:
            value = operation()
            if commit:
                self.session.commit()
        except EngineError as e:
            self.session.rollback()
            self.events.clear()
            return Result.failure(e)
        except SQLAlchemyError as e:
            self.session.rollback()
            self.events.clear()
            logger.error(f"Storage failure during {description}: {str(e)}")
            return Result.failure(StorageError())

        self.events.flush(sender=self)
        return Result.success(value)

    def _require_user(self, user_id: int, field: str = 'user_id') -> int:
        require_user_id(user_id, field)
        if self.session.get(User, user_id) is None:
            raise NotFoundError(f"User {user_id} not found")
        return user_id

    def record_swipe(self, actor_id: int, target_id: int, kind: str, source_ip: Optional[str] = None) -> Result:
        """
        Record a decision and run match detection and analytics with it.

        The swipe, any resulting match and the counters commit together;
        a failing counter is dropped without undoing the swipe.
        """
        def operation():
            self.swipes.validate(actor_id, target_id, kind)
            self._require_user(actor_id, 'actor_id')
            self._require_user(target_id, 'target_id')
            swipe = self.swipes.record(actor_id, target_id, kind, source_ip)

            match = None
            if swipe.is_like:
                match = self.detector.on_like_recorded(actor_id, target_id)

            self.queue.discard(actor_id, target_id)
            self.analytics.record_event(actor_id, kind, 'given')
            self.analytics.record_event(target_id, kind, 'received')

            logger.info(f"User {actor_id} swiped {kind} on {target_id}")
            return {'swipe': swipe, 'match': match}

        return self._run(operation, f"record_swipe {actor_id}->{target_id}")

    def undo_last_swipe(self, actor_id: int) -> Result:
        """
        Deactivate the actor's most recent active swipe.

        A like that was holding a match together unmatches the pair. Counters
        are left untouched.
        """
        def operation():
            swipe = self.swipes.undo_last(actor_id)
            self.events.add(
                swipe_undone,
                swipe_id=swipe.id,
                actor_id=swipe.actor_id,
                target_id=swipe.target_id,
            )
            match = self.detector.on_undo(actor_id, swipe.target_id, swipe.kind)
            self.queue.restore(actor_id, swipe.target_id)

            logger.info(f"User {actor_id} undid swipe {swipe.id} on {swipe.target_id}")
            return {'swipe': swipe, 'match_status_changed': match}

        return self._run(operation, f"undo_last_swipe {actor_id}")

    def rebuild_queue(self, viewer_id: int, desired_size: int = DEFAULT_QUEUE_SIZE) -> Result:
        def operation():
            require_user_id(viewer_id, 'viewer_id')
            return self.queue.rebuild(viewer_id, desired_size)

        return self._run(operation, f"rebuild_queue {viewer_id}")

    def read_queue(self, viewer_id: int, limit: int = 20, mark_shown: bool = False) -> Result:
        def operation():
            self._require_user(viewer_id, 'viewer_id')
            entries = self.queue.read(viewer_id, _require_limit(limit))
            candidates = [
                {
                    'candidate_id': entry.candidate_id,
                    'compatibility_score': entry.compatibility_score,
                    'priority': entry.priority,
                    'last_shown_at': entry.last_shown_at,
                }
                for entry in entries
            ]
            if mark_shown:
                self.queue.mark_shown(viewer_id, [c['candidate_id'] for c in candidates])
            return candidates

        return self._run(operation, f"read_queue {viewer_id}", commit=mark_shown)

    def read_matches(self, user_id: int, status: Optional[str] = 'active') -> Result:
        """List the user's matches; status None means every status."""
        def operation():
            if status is not None and status not in MATCH_STATUSES:
                raise ValidationError(
                    f"Invalid status '{status}'. Must be one of: {', '.join(MATCH_STATUSES)}",
                    {'field': 'status'}
                )
            self._require_user(user_id)
            return self.matches.for_user(user_id, status)

        return self._run(operation, f"read_matches {user_id}", commit=False)

    def read_analytics(self, user_id: int, period: str = 'all') -> Result:
        def operation():
            require_user_id(user_id)
            return self.analytics.read(user_id, period)

        return self._run(operation, f"read_analytics {user_id}", commit=False)

    def read_history(self, actor_id: int, limit: int = 50, offset: int = 0) -> Result:
        def operation():
            require_user_id(actor_id, 'actor_id')
            if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
                raise ValidationError("offset must be a non-negative integer", {'field': 'offset'})
            return self.swipes.history(actor_id, _require_limit(limit), offset)

        return self._run(operation, f"read_history {actor_id}", commit=False)

    def read_likers(self, user_id: int, limit: int = 20, offset: int = 0) -> Result:
        def operation():
            require_user_id(user_id)
            if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
                raise ValidationError("offset must be a non-negative integer", {'field': 'offset'})
            return self.swipes.likers_of(user_id, _require_limit(limit), offset)

        return self._run(operation, f"read_likers {user_id}", commit=False)


def get_engine() -> SwipeMatchEngine:
    """Engine bound to the current app's session and settings."""
    return SwipeMatchEngine(
        db.session,
        default_max_distance=current_app.config.get('DEFAULT_MAX_DISTANCE', DEFAULT_MAX_DISTANCE),
    )
