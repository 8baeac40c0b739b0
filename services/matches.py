import logging
from typing import Callable, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from models import Match, User, LIKE_KINDS
from services.clock import utcnow
from services.events import EventBuffer, match_created, match_unmatched
from utils.pairs import PairKey

logger = logging.getLogger(__name__)


class MatchRepository:
    def __init__(self, session, clock: Callable = utcnow):
        self.session = session
        self.clock = clock

    def lock_pair(self, pair: PairKey):
        """
        Row-lock both users, lowest id first.

        Reciprocal likes from either side queue up here, so whichever commits
        second sees the other swipe when it probes. NO KEY UPDATE leaves the
        KEY SHARE locks taken by swipe foreign keys compatible.
        """
        self.session.query(User.id).filter(User.id.in_((pair.low, pair.high))) \
            .order_by(User.id).with_for_update(key_share=True).all()

    def get(self, pair: PairKey, for_update: bool = False) -> Optional[Match]:
        query = self.session.query(Match).filter_by(low_user_id=pair.low, high_user_id=pair.high)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def create_active(self, pair: PairKey) -> Optional[Match]:
        """
        Insert an active match for the pair.

        Returns None when the row already exists, including when a concurrent
        writer inserted it between our probe and this insert.
        """
        now = self.clock()
        match = Match(
            low_user_id=pair.low,
            high_user_id=pair.high,
            status='active',
            matched_at=now,
            last_activity_at=now,
        )
        try:
            with self.session.begin_nested():
                self.session.add(match)
        except IntegrityError:
            logger.info(f"Match {pair} already exists, skipping duplicate insert")
            return None
        return match

    def set_status(self, match: Match, status: str) -> Match:
        match.status = status
        match.last_activity_at = self.clock()
        self.session.flush()
        return match

    def for_user(self, user_id: int, status: Optional[str] = 'active') -> List[Match]:
        query = self.session.query(Match).filter(
            or_(Match.low_user_id == user_id, Match.high_user_id == user_id)
        )
        if status is not None:
            query = query.filter(Match.status == status)
        return query.order_by(Match.matched_at.desc(), Match.id.desc()).all()


class MatchDetector:
    """
    Turns reciprocal likes into matches and retracts them on undo.

    This is the only place matches are created; the unique pair constraint
    makes concurrent detection from both directions converge on one row.
    """

    def __init__(self, swipes, matches: MatchRepository, analytics=None, events: Optional[EventBuffer] = None):
        self.swipes = swipes
        self.matches = matches
        self.analytics = analytics
        self.events = events if events is not None else EventBuffer()

    def on_like_recorded(self, actor_id: int, target_id: int) -> Optional[Match]:
        """Return the pair's active match if the like completed one."""
        pair = PairKey.of(actor_id, target_id)
        self.matches.lock_pair(pair)
        if not self.swipes.has_active(target_id, actor_id, kinds=LIKE_KINDS):
            return None

        existing = self.matches.get(pair)
        if existing is not None:
            return existing if existing.status == 'active' else None

        match = self.matches.create_active(pair)
        if match is None:
            existing = self.matches.get(pair)
            return existing if existing is not None and existing.status == 'active' else None

        logger.info(f"Match created between {pair.low} and {pair.high}")
        if self.analytics is not None:
            self.analytics.record_event(pair.low, 'match', 'created')
            self.analytics.record_event(pair.high, 'match', 'created')
        self.events.add(
            match_created,
            match_id=match.id,
            low_user_id=pair.low,
            high_user_id=pair.high,
        )
        return match

    def on_undo(self, actor_id: int, target_id: int, kind: str) -> Optional[Match]:
        """Unmatch the pair if the undone like was holding a match together."""
        if kind not in LIKE_KINDS:
            return None

        pair = PairKey.of(actor_id, target_id)
        match = self.matches.get(pair, for_update=True)
        if match is None or match.status != 'active':
            return None

        still_mutual = (
            self.swipes.has_active(pair.low, pair.high, kinds=LIKE_KINDS)
            and self.swipes.has_active(pair.high, pair.low, kinds=LIKE_KINDS)
        )
        if still_mutual:
            return None

        self.matches.set_status(match, 'unmatched')
        logger.info(f"Match {pair} unmatched after undo by {actor_id}")
        self.events.add(
            match_unmatched,
            match_id=match.id,
            low_user_id=pair.low,
            high_user_id=pair.high,
        )
        return match
