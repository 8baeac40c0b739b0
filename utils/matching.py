"""
Compatibility scoring between a viewer and a discovery candidate.

Everything here is pure: callers load the features, this module only does
arithmetic, so it can be exercised without a database.
"""
import math
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

DEFAULT_MAX_DISTANCE = 50.0  # miles
EARTH_RADIUS_MILES = 3959.0

NEUTRAL_DISTANCE_SCORE = 50.0
NEUTRAL_INTEREST_SCORE = 30.0


def normalize_interests(interests: Optional[Iterable[str]]) -> FrozenSet[str]:
    if not interests:
        return frozenset()
    return frozenset(
        tag.strip().lower() for tag in interests
        if isinstance(tag, str) and tag.strip()
    )


def _finite(value) -> Optional[float]:
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


@dataclass(frozen=True)
class FeatureSet:
    """What the scorer knows about one person."""
    age: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    max_distance: Optional[float] = None
    interests: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def coordinates(self):
        lat, lon = _finite(self.latitude), _finite(self.longitude)
        if lat is None or lon is None:
            return None
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
            return None
        return lat, lon


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in miles."""
    lat1_rad, lon1_rad = math.radians(lat1), math.radians(lon1)
    lat2_rad, lon2_rad = math.radians(lat2), math.radians(lon2)

    delta_lat = lat2_rad - lat1_rad
    delta_lon = lon2_rad - lon1_rad

    a = (math.sin(delta_lat / 2) ** 2
         + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2)
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def age_score(viewer: FeatureSet, candidate: FeatureSet) -> Optional[float]:
    """
    100 at the middle of the viewer's preferred range, 0 at its edges and
    outside it. None when the age or the range is unknown.
    """
    age = _finite(candidate.age)
    low, high = _finite(viewer.min_age), _finite(viewer.max_age)
    if age is None or low is None or high is None:
        return None
    if low > high:
        low, high = high, low
    if age < low or age > high:
        return 0.0

    half_width = (high - low) / 2
    if half_width == 0:
        return 100.0
    midpoint = low + half_width
    return max(0.0, 100.0 * (1 - abs(age - midpoint) / half_width))


def distance_score(viewer: FeatureSet, candidate: FeatureSet) -> float:
    viewer_coords, candidate_coords = viewer.coordinates, candidate.coordinates
    if viewer_coords is None or candidate_coords is None:
        return NEUTRAL_DISTANCE_SCORE

    max_distance = _finite(viewer.max_distance)
    if max_distance is None or max_distance <= 0:
        max_distance = DEFAULT_MAX_DISTANCE

    distance = haversine_distance(*viewer_coords, *candidate_coords)
    return max(0.0, 100.0 * (1 - distance / max_distance))


def interest_score(viewer: FeatureSet, candidate: FeatureSet) -> float:
    mine = normalize_interests(viewer.interests)
    theirs = normalize_interests(candidate.interests)
    if not mine or not theirs:
        return NEUTRAL_INTEREST_SCORE
    return 100.0 * len(mine & theirs) / len(mine | theirs)


def calculate_compatibility_score(viewer: FeatureSet, candidate: FeatureSet) -> float:
    """
    Combine the age, distance and interest terms into a 0..1 score.

    Missing data never drags the score down: distance and interests fall back
    to their neutral values and an unknown age simply drops out of the mean.
    """
    terms = [distance_score(viewer, candidate), interest_score(viewer, candidate)]

    age = age_score(viewer, candidate)
    if age is not None:
        terms.append(age)

    score = sum(terms) / len(terms) / 100.0

    # Ensure it's within bounds
    return max(0.0, min(1.0, score))
