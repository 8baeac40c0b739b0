from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from models import DailyAnalytics, Swipe, COUNTER_FIELDS
from services.analytics import AnalyticsAggregator
from services.errors import ValidationError


@pytest.fixture
def users(make_user):
    for user_id in (10, 20, 30):
        make_user(user_id)


def test_idle_user_reads_all_zero_counters(engine):
    for period in ('day', 'week', 'month', 'all'):
        analytics = engine.read_analytics(77, period).value
        assert analytics is not None
        assert all(analytics[counter] == 0 for counter in COUNTER_FIELDS)
        assert analytics['last_updated'] is None


def test_mutual_like_counters(engine, users):
    engine.record_swipe(10, 20, 'like')
    engine.record_swipe(20, 10, 'like')

    first = engine.read_analytics(10, 'day').value
    assert first['likes_given'] == 1
    assert first['likes_received'] == 1
    assert first['total_swipes'] == 1
    assert first['matches_created'] == 1

    second = engine.read_analytics(20, 'day').value
    assert second['likes_given'] == 1
    assert second['likes_received'] == 1
    assert second['total_swipes'] == 1
    assert second['matches_created'] == 1


def test_each_kind_moves_its_own_counters(engine, users):
    engine.record_swipe(10, 20, 'pass')
    engine.record_swipe(10, 30, 'super_like')

    actor = engine.read_analytics(10).value
    assert (actor['passes_given'], actor['super_likes_given'], actor['total_swipes']) == (1, 1, 2)

    assert engine.read_analytics(20).value['passes_received'] == 1
    assert engine.read_analytics(30).value['super_likes_received'] == 1
    assert engine.read_analytics(30).value['total_swipes'] == 0


def test_undo_never_decrements(engine, users):
    engine.record_swipe(10, 20, 'like')
    engine.record_swipe(20, 10, 'like')
    engine.undo_last_swipe(10)

    analytics = engine.read_analytics(10, 'day').value
    assert analytics['likes_given'] == 1
    assert analytics['matches_created'] == 1


def test_one_row_per_user_and_day(engine, clock, users):
    engine.record_swipe(10, 20, 'like')
    engine.record_swipe(10, 30, 'pass')
    assert DailyAnalytics.query.filter_by(user_id=10).count() == 1

    clock.advance(days=1)
    engine.undo_last_swipe(10)
    engine.record_swipe(10, 30, 'like')
    rows = DailyAnalytics.query.filter_by(user_id=10).order_by(DailyAnalytics.date).all()
    assert [(row.date.isoformat(), row.total_swipes) for row in rows] == [
        ('2026-10-14', 2),
        ('2026-10-15', 1),
    ]


def test_periods_sum_the_right_days(session, clock):
    aggregator = AnalyticsAggregator(session, clock)
    for day, kind in [
        (datetime(2026, 9, 30, 9), 'like'),
        (datetime(2026, 10, 5, 9), 'pass'),
        (datetime(2026, 10, 12, 9), 'super_like'),
        (datetime(2026, 10, 14, 9), 'like'),
        (datetime(2026, 10, 14, 10), 'like'),
    ]:
        clock.now = day
        aggregator.record_event(10, kind, 'given')
    session.commit()

    clock.now = datetime(2026, 10, 14, 12)
    totals = {period: aggregator.read(10, period)['total_swipes'] for period in ('day', 'week', 'month', 'all')}
    assert totals == {'day': 2, 'week': 3, 'month': 4, 'all': 5}
    assert aggregator.read(10, 'all')['last_updated'] == datetime(2026, 10, 14, 10)


def test_match_events_do_not_count_as_swipes(session, clock):
    aggregator = AnalyticsAggregator(session, clock)
    assert aggregator.record_event(10, 'match', 'created')
    analytics = aggregator.read(10, 'day')
    assert analytics['matches_created'] == 1
    assert analytics['total_swipes'] == 0


def test_unknown_events_are_ignored(session, clock):
    aggregator = AnalyticsAggregator(session, clock)
    assert aggregator.record_event(10, 'like', 'created') is False
    assert aggregator.record_event(10, 'wink', 'given') is False
    assert DailyAnalytics.query.count() == 0


def test_invalid_period_is_rejected(engine):
    result = engine.read_analytics(10, 'year')
    assert isinstance(result.error, ValidationError)
    assert isinstance(engine.read_analytics(0).error, ValidationError)


def test_counter_failure_keeps_the_swipe(engine, users, monkeypatch):
    def broken(user_id, field):
        raise OperationalError("UPDATE swipe_analytics", {}, Exception("deadlock"))

    monkeypatch.setattr(engine.analytics, '_increment', broken)

    result = engine.record_swipe(10, 20, 'like')
    assert result.ok
    assert Swipe.query.filter_by(actor_id=10, target_id=20, active=True).count() == 1
    assert DailyAnalytics.query.count() == 0
