import logging
from datetime import timedelta
from typing import Callable

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import DailyAnalytics, COUNTER_FIELDS
from services.clock import utcnow
from services.errors import ValidationError

logger = logging.getLogger(__name__)

PERIODS = ('day', 'week', 'month', 'all')

FIELD_MAP = {
    ('like', 'given'): 'likes_given',
    ('like', 'received'): 'likes_received',
    ('pass', 'given'): 'passes_given',
    ('pass', 'received'): 'passes_received',
    ('super_like', 'given'): 'super_likes_given',
    ('super_like', 'received'): 'super_likes_received',
    ('match', 'created'): 'matches_created',
}


class AnalyticsAggregator:
    """
    Per-user, per-day activity counters.

    Counters only ever go up; undoing a swipe leaves them as they were.
    total_swipes counts the swipes a user gave.
    """

    def __init__(self, session, clock: Callable = utcnow):
        self.session = session
        self.clock = clock

    def record_event(self, user_id: int, event_kind: str, direction: str) -> bool:
        field = FIELD_MAP.get((event_kind, direction))
        if field is None:
            logger.warning(f"Ignoring unknown analytics event {event_kind}/{direction} for user {user_id}")
            return False

        try:
            with self.session.begin_nested():
                self._increment(user_id, field)
        except SQLAlchemyError as e:
            # Losing a counter is acceptable, losing the swipe is not
            logger.error(f"Failed to record {field} for user {user_id}: {str(e)}")
            return False
        return True

    def _increment(self, user_id: int, field: str):
        now = self.clock()
        today = now.date()
        is_swipe = field.endswith('_given')

        values = {field: getattr(DailyAnalytics, field) + 1, 'updated_at': now}
        if is_swipe:
            values['total_swipes'] = DailyAnalytics.total_swipes + 1

        query = self.session.query(DailyAnalytics).filter_by(user_id=user_id, date=today)
        if query.update(values):
            return

        row = DailyAnalytics(user_id=user_id, date=today, updated_at=now)
        for counter in COUNTER_FIELDS:
            setattr(row, counter, 0)
        setattr(row, field, 1)
        if is_swipe:
            row.total_swipes = 1

        try:
            with self.session.begin_nested():
                self.session.add(row)
        except IntegrityError:
            # Another writer created today's row first
            query.update(values)

    def read(self, user_id: int, period: str = 'all') -> dict:
        if period not in PERIODS:
            raise ValidationError(
                f"Invalid period '{period}'. Must be one of: {', '.join(PERIODS)}",
                {'field': 'period'}
            )

        today = self.clock().date()
        columns = [
            func.coalesce(func.sum(getattr(DailyAnalytics, counter)), 0).label(counter)
            for counter in COUNTER_FIELDS
        ]
        query = self.session.query(*columns, func.max(DailyAnalytics.updated_at).label('last_updated')) \
            .filter(DailyAnalytics.user_id == user_id)

        if period == 'day':
            query = query.filter(DailyAnalytics.date == today)
        elif period == 'week':
            query = query.filter(DailyAnalytics.date.between(today - timedelta(days=today.weekday()), today))
        elif period == 'month':
            query = query.filter(DailyAnalytics.date.between(today.replace(day=1), today))

        row = query.one()
        totals = {counter: int(getattr(row, counter) or 0) for counter in COUNTER_FIELDS}
        return {
            'user_id': user_id,
            'period': period,
            **totals,
            'last_updated': row.last_updated,
        }
