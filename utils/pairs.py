from typing import NamedTuple


class PairKey(NamedTuple):
    """Unordered user pair in canonical (low, high) order."""
    low: int
    high: int

    @classmethod
    def of(cls, user_a: int, user_b: int) -> "PairKey":
        if user_a == user_b:
            raise ValueError("A pair needs two distinct users")
        return cls(min(user_a, user_b), max(user_a, user_b))

    def contains(self, user_id: int) -> bool:
        return user_id == self.low or user_id == self.high

    def __str__(self):
        return f"{self.low}:{self.high}"
