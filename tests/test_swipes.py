import pytest

from models import Swipe
from services.errors import ConflictError, NotFoundError, StorageError, ValidationError
from services.swipes import SwipeRepository


@pytest.fixture
def users(make_user):
    for user_id in (10, 20, 30, 40):
        make_user(user_id)


@pytest.mark.parametrize('kind', ['like', 'pass', 'super_like'])
def test_second_swipe_on_same_target_conflicts(engine, users, kind):
    first = engine.record_swipe(10, 20, 'like')
    assert first.ok

    second = engine.record_swipe(10, 20, kind)
    assert not second.ok
    assert isinstance(second.error, ConflictError)

    active = Swipe.query.filter_by(actor_id=10, target_id=20, active=True).all()
    assert [swipe.id for swipe in active] == [first.value['swipe'].id]
    assert active[0].kind == 'like'


def test_first_swipes_get_sequential_ids(engine, users):
    assert engine.record_swipe(10, 20, 'like').value['swipe'].id == 1
    assert engine.record_swipe(20, 10, 'like').value['swipe'].id == 2


def test_self_swipe_is_rejected(engine, users):
    result = engine.record_swipe(10, 10, 'like')
    assert isinstance(result.error, ValidationError)
    assert Swipe.query.count() == 0


@pytest.mark.parametrize('kind', ['dislike', '', None, 'LIKE'])
def test_unknown_kind_is_rejected(engine, users, kind):
    result = engine.record_swipe(10, 20, kind)
    assert isinstance(result.error, ValidationError)
    assert result.error.details == {'field': 'kind'}


@pytest.mark.parametrize('actor,target', [(0, 20), (-1, 20), (10, '20'), (True, 20), (10, None)])
def test_malformed_ids_are_rejected(engine, users, actor, target):
    assert isinstance(engine.record_swipe(actor, target, 'like').error, ValidationError)


def test_swipe_on_unknown_user_is_not_found(engine, users):
    result = engine.record_swipe(10, 999, 'like')
    assert isinstance(result.error, NotFoundError)
    assert Swipe.query.count() == 0


def test_swipe_from_unknown_user_is_not_found(engine, users):
    result = engine.record_swipe(999, 20, 'like')
    assert isinstance(result.error, NotFoundError)
    assert Swipe.query.count() == 0


def test_source_ip_is_stored(engine, users):
    swipe = engine.record_swipe(10, 20, 'pass', source_ip='203.0.113.9').value['swipe']
    assert swipe.source_ip == '203.0.113.9'
    assert swipe.active is True


def test_lost_insert_race_becomes_conflict(session, clock, users, monkeypatch):
    swipes = SwipeRepository(session, clock)
    swipes.record(10, 20, 'like')
    session.commit()

    real_has_active = swipes.has_active
    calls = []

    def stale_probe(actor_id, target_id, kinds=None):
        calls.append((actor_id, target_id))
        if len(calls) == 1:
            return False
        return real_has_active(actor_id, target_id, kinds)

    monkeypatch.setattr(swipes, 'has_active', stale_probe)

    with pytest.raises(ConflictError):
        swipes.record(10, 20, 'pass')
    session.commit()

    assert Swipe.query.filter_by(actor_id=10, target_id=20, active=True).count() == 1


def test_undo_deactivates_most_recent_swipe(engine, clock, users):
    engine.record_swipe(10, 20, 'like')
    clock.advance(minutes=1)
    engine.record_swipe(10, 30, 'pass')

    result = engine.undo_last_swipe(10)
    assert result.ok
    undone = result.value['swipe']
    assert undone.target_id == 30
    assert undone.active is False
    assert undone.undone_at == clock.now
    assert result.value['match_status_changed'] is None

    still_active = Swipe.query.filter_by(actor_id=10, active=True).one()
    assert still_active.target_id == 20


def test_undo_breaks_ties_by_newest_id(engine, users):
    engine.record_swipe(10, 20, 'like')
    engine.record_swipe(10, 30, 'like')
    assert engine.undo_last_swipe(10).value['swipe'].target_id == 30


def test_undo_with_nothing_active_is_not_found(engine, users):
    result = engine.undo_last_swipe(10)
    assert not result.ok
    assert isinstance(result.error, NotFoundError)

    engine.record_swipe(10, 20, 'like')
    assert engine.undo_last_swipe(10).ok
    assert isinstance(engine.undo_last_swipe(10).error, NotFoundError)


def test_reswipe_after_undo_is_allowed_immediately(engine, users):
    engine.record_swipe(10, 20, 'like')
    engine.undo_last_swipe(10)

    result = engine.record_swipe(10, 20, 'pass')
    assert result.ok

    rows = Swipe.query.filter_by(actor_id=10, target_id=20).order_by(Swipe.id).all()
    assert [(row.kind, row.active) for row in rows] == [('like', False), ('pass', True)]


def test_undone_swipes_are_kept_for_audit(engine, users):
    for _ in range(3):
        engine.record_swipe(10, 20, 'like')
        engine.undo_last_swipe(10)
    assert Swipe.query.filter_by(actor_id=10, target_id=20, active=False).count() == 3


def test_has_active_can_filter_by_kind(session, clock, users):
    swipes = SwipeRepository(session, clock)
    swipes.record(10, 20, 'pass')
    assert swipes.has_active(10, 20)
    assert not swipes.has_active(10, 20, kinds=('like', 'super_like'))
    assert not swipes.has_active(20, 10)


def test_history_lists_active_swipes_newest_first(engine, clock, users):
    engine.record_swipe(10, 20, 'like')
    clock.advance(seconds=5)
    engine.record_swipe(10, 30, 'pass')
    clock.advance(seconds=5)
    engine.record_swipe(10, 40, 'super_like')
    engine.undo_last_swipe(10)

    history = engine.read_history(10).value
    assert [swipe.target_id for swipe in history] == [30, 20]
    assert [swipe.target_id for swipe in engine.read_history(10, limit=1, offset=1).value] == [20]
    assert isinstance(engine.read_history(10, limit=0).error, ValidationError)


def test_likers_lists_unanswered_likes_super_likes_first(engine, clock, users):
    engine.record_swipe(20, 10, 'like')
    clock.advance(seconds=5)
    engine.record_swipe(30, 10, 'super_like')
    clock.advance(seconds=5)
    engine.record_swipe(40, 10, 'pass')

    likers = engine.read_likers(10).value
    assert [(swipe.actor_id, swipe.kind) for swipe in likers] == [(30, 'super_like'), (20, 'like')]

    engine.record_swipe(10, 30, 'pass')
    assert [swipe.actor_id for swipe in engine.read_likers(10).value] == [20]


def test_storage_failure_is_opaque(engine, users, monkeypatch):
    from sqlalchemy.exc import OperationalError

    def broken(*args, **kwargs):
        raise OperationalError("INSERT INTO swipes", {}, Exception("connection reset"))

    monkeypatch.setattr(engine.swipes, 'has_active', broken)
    result = engine.record_swipe(10, 20, 'like')

    assert isinstance(result.error, StorageError)
    assert 'connection reset' not in result.error.message
