from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app import create_app
from config import TestConfig
from models import db, User, Profile, Preference, UserInterest
from services import SwipeMatchEngine


class FrozenClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def session(app):
    return db.session


@pytest.fixture
def clock():
    # A Wednesday, so the current ISO week started two days earlier
    return FrozenClock(datetime(2026, 10, 14, 12, 0, 0))


@pytest.fixture
def engine(session, clock):
    return SwipeMatchEngine(session, clock=clock)


@pytest.fixture
def make_user(session):
    def _make(user_id, age=30, gender='female', latitude=None, longitude=None,
              last_active_at=None, interests=(), preferences=None):
        session.add(User(id=user_id, name=f"user{user_id}"))
        session.add(Profile(
            user_id=user_id,
            age=age,
            gender=gender,
            latitude=latitude,
            longitude=longitude,
            last_active_at=last_active_at,
        ))
        for name in interests:
            session.add(UserInterest(user_id=user_id, interest_name=name))
        if preferences is not None:
            session.add(Preference(user_id=user_id, **preferences))
        session.commit()
        return user_id
    return _make


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(app):
    def _header(user_id):
        token = jwt.encode(
            {'sub': str(user_id), 'exp': datetime.now(timezone.utc) + timedelta(minutes=5)},
            app.config['JWT_SECRET'],
            algorithm='HS256'
        )
        return {'Authorization': f'Bearer {token}'}
    return _header
