from .challenges import ChallengeRepository
from .habits import HabitRepository
from .moods import MoodRepository
from .users import UserRepository

__all__ = [
    "UserRepository",
    "HabitRepository",
    "MoodRepository",
    "ChallengeRepository",
]
