import os
from dotenv import load_dotenv

load_dotenv()


def _database_url():
    url = os.getenv('DATABASE_URL', 'sqlite:///swipe_engine.db')
    # Heroku-style URLs use the scheme SQLAlchemy dropped
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    # --- Database ---
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Cache (Redis) ---
    CACHE_ENABLED = os.getenv('CACHE_ENABLED', '1') == '1'
    REDIS_URL = os.getenv('REDIS_URL')
    REDIS_HOST = os.getenv('REDIS_HOST', 'localhost')
    REDIS_PORT = int(os.getenv('REDIS_PORT', 6379))
    REDIS_DB = int(os.getenv('REDIS_DB', 0))
    REDIS_PASSWORD = os.getenv('REDIS_PASSWORD', None)

    # --- Auth ---
    JWT_JWKS_URL = os.getenv('JWT_JWKS_URL')
    JWT_AUDIENCE = os.getenv('JWT_AUDIENCE')
    JWT_SECRET = os.getenv('JWT_SECRET')

    # --- Discovery ---
    DEFAULT_QUEUE_SIZE = int(os.getenv('DEFAULT_QUEUE_SIZE', 50))
    DEFAULT_MAX_DISTANCE = float(os.getenv('DEFAULT_MAX_DISTANCE', 50))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    CACHE_ENABLED = False
    JWT_JWKS_URL = None
    JWT_AUDIENCE = None
    JWT_SECRET = 'test-secret-key-with-at-least-32-bytes'
