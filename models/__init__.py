from .base import db, metadata
from .users import User
from .profiles import Profile, UserInterest
from .preferences import Preference
from .swipes import Swipe, SWIPE_KINDS, LIKE_KINDS
from .matches import Match, MATCH_STATUSES
from .queue import QueueEntry
from .analytics import DailyAnalytics, COUNTER_FIELDS

__all__ = [
    'db',
    'metadata',
    'User',
    'Profile',
    'UserInterest',
    'Preference',
    'Swipe',
    'SWIPE_KINDS',
    'LIKE_KINDS',
    'Match',
    'MATCH_STATUSES',
    'QueueEntry',
    'DailyAnalytics',
    'COUNTER_FIELDS',
]
