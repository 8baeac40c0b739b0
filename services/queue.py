import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional

from models import Preference, Profile, QueueEntry, UserInterest
from services.clock import utcnow
from services.errors import ValidationError
from utils.matching import (
    DEFAULT_MAX_DISTANCE,
    FeatureSet,
    calculate_compatibility_score,
    normalize_interests,
)

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 50
SUPER_LIKE_PRIORITY = 1


class QueueBuilder:
    """
    Precomputed discovery queue per viewer.

    A rebuild replaces the viewer's whole queue. Two rebuilds racing for the
    same viewer are not serialized; the next rebuild wins.
    """

    def __init__(self, session, swipes, clock: Callable = utcnow,
                 default_max_distance: float = DEFAULT_MAX_DISTANCE):
        self.session = session
        self.swipes = swipes
        self.clock = clock
        self.default_max_distance = default_max_distance

    def rebuild(self, viewer_id: int, desired_size: int = DEFAULT_QUEUE_SIZE) -> int:
        """
        Replace the viewer's queue with up to desired_size scored candidates.

        Returns the number of entries written; 0 when the viewer has no
        preferences on file.
        """
        if isinstance(desired_size, bool) or not isinstance(desired_size, int) or desired_size <= 0:
            raise ValidationError("desired_size must be a positive integer", {'field': 'size'})

        self.session.query(QueueEntry).filter_by(viewer_id=viewer_id).delete()

        preferences = self._preferences(viewer_id)
        if preferences is None:
            logger.warning(f"No preferences for user {viewer_id}, queue left empty")
            return 0

        candidates = self._candidate_pool(viewer_id, preferences, desired_size)
        if not candidates:
            logger.info(f"No candidates found for user {viewer_id}")
            return 0

        candidate_ids = [profile.user_id for profile in candidates]
        interests = self._interests_for([viewer_id] + candidate_ids)
        viewer = self._viewer_features(viewer_id, preferences, interests.get(viewer_id))
        super_likers = self.swipes.super_likers_among(viewer_id, candidate_ids)

        entries = [
            QueueEntry(
                viewer_id=viewer_id,
                candidate_id=profile.user_id,
                compatibility_score=calculate_compatibility_score(
                    viewer, self._candidate_features(profile, interests.get(profile.user_id))
                ),
                priority=SUPER_LIKE_PRIORITY if profile.user_id in super_likers else 0,
            )
            for profile in candidates
        ]
        self.session.add_all(entries)
        self.session.flush()

        logger.info(f"Rebuilt queue for user {viewer_id} with {len(entries)} candidates")
        return len(entries)

    def read(self, viewer_id: int, limit: int = 20) -> List[QueueEntry]:
        return (
            self.session.query(QueueEntry)
            .filter_by(viewer_id=viewer_id)
            .order_by(
                QueueEntry.compatibility_score.desc(),
                QueueEntry.priority.desc(),
                QueueEntry.candidate_id.asc(),
            )
            .limit(limit)
            .all()
        )

    def discard(self, viewer_id: int, candidate_id: int) -> int:
        return self.session.query(QueueEntry).filter_by(
            viewer_id=viewer_id, candidate_id=candidate_id
        ).delete()

    def restore(self, viewer_id: int, candidate_id: int) -> Optional[QueueEntry]:
        """Put an undone candidate back in front of the viewer, if still eligible."""
        exists = self.session.query(QueueEntry.id).filter_by(
            viewer_id=viewer_id, candidate_id=candidate_id
        ).first()
        if exists or self.swipes.has_active(viewer_id, candidate_id):
            return None

        preferences = self._preferences(viewer_id)
        profile = self.session.query(Profile).filter_by(user_id=candidate_id).first()
        if preferences is None or profile is None or not self._eligible(profile, preferences):
            return None

        interests = self._interests_for([viewer_id, candidate_id])
        entry = QueueEntry(
            viewer_id=viewer_id,
            candidate_id=candidate_id,
            compatibility_score=calculate_compatibility_score(
                self._viewer_features(viewer_id, preferences, interests.get(viewer_id)),
                self._candidate_features(profile, interests.get(candidate_id)),
            ),
            priority=SUPER_LIKE_PRIORITY if self.swipes.super_likers_among(viewer_id, [candidate_id]) else 0,
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def mark_shown(self, viewer_id: int, candidate_ids: Iterable[int]) -> int:
        candidate_ids = list(candidate_ids)
        if not candidate_ids:
            return 0
        return self.session.query(QueueEntry).filter(
            QueueEntry.viewer_id == viewer_id,
            QueueEntry.candidate_id.in_(candidate_ids),
        ).update({'last_shown_at': self.clock()})

    def _preferences(self, user_id: int) -> Optional[Preference]:
        return self.session.query(Preference).filter_by(user_id=user_id).first()

    def _candidate_pool(self, viewer_id: int, preferences: Preference, limit: int) -> List[Profile]:
        query = self.session.query(Profile).filter(
            Profile.user_id != viewer_id,
            Profile.age.between(preferences.min_age, preferences.max_age),
            Profile.user_id.not_in(self.swipes.active_targets(viewer_id)),
        )
        if preferences.preferred_gender and preferences.preferred_gender != 'any':
            query = query.filter(Profile.gender == preferences.preferred_gender)

        return (
            query.order_by(Profile.last_active_at.desc().nulls_last(), Profile.user_id.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def _eligible(profile: Profile, preferences: Preference) -> bool:
        if profile.age is None or not (preferences.min_age <= profile.age <= preferences.max_age):
            return False
        if preferences.preferred_gender and preferences.preferred_gender != 'any':
            return profile.gender == preferences.preferred_gender
        return True

    def _interests_for(self, user_ids: List[int]) -> Dict[int, frozenset]:
        grouped = defaultdict(list)
        rows = self.session.query(UserInterest.user_id, UserInterest.interest_name).filter(
            UserInterest.user_id.in_(user_ids)
        ).all()
        for row in rows:
            grouped[row.user_id].append(row.interest_name)
        return {user_id: normalize_interests(names) for user_id, names in grouped.items()}

    def _viewer_features(self, viewer_id: int, preferences: Preference, interests) -> FeatureSet:
        profile = self.session.query(Profile).filter_by(user_id=viewer_id).first()
        return FeatureSet(
            age=profile.age if profile else None,
            latitude=profile.latitude if profile else None,
            longitude=profile.longitude if profile else None,
            min_age=preferences.min_age,
            max_age=preferences.max_age,
            max_distance=preferences.max_distance or self.default_max_distance,
            interests=interests or frozenset(),
        )

    @staticmethod
    def _candidate_features(profile: Profile, interests) -> FeatureSet:
        return FeatureSet(
            age=profile.age,
            latitude=profile.latitude,
            longitude=profile.longitude,
            interests=interests or frozenset(),
        )
