from .base import Base
from .challenge import Challenge, UserChallenge
from .enums import ChallengeStatus, Difficulty, EnergyLevel, Frequency
from .habit import Habit, HabitCompletion
from .mood import MoodEntry
from .user import User

__all__ = [
    "Base",
    "User",
    "Habit",
    "HabitCompletion",
    "MoodEntry",
    "Challenge",
    "UserChallenge",
    "Frequency",
    "EnergyLevel",
    "Difficulty",
    "ChallengeStatus",
]
