from __future__ import annotations

import datetime as dt
import math
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from wellness_tracker.models.base import utcnow
from wellness_tracker.models.enums import EnergyLevel
from wellness_tracker.models.habit import Habit
from wellness_tracker.models.mood import MoodEntry
from wellness_tracker.settings import settings

RateFor = Callable[[Habit], float]


@dataclass(frozen=True)
class MoodOverview:
    count: int
    mean: float
    highest: float
    lowest: float


@dataclass(frozen=True)
class HabitSummary:
    total: int
    best_streak: int
    average_completion: float


@dataclass(frozen=True)
class MoodSummary:
    average: Optional[float]
    count: int
    most_common: Optional[str]


@dataclass(frozen=True)
class AnalyticsReport:
    overview: MoodOverview
    distribution: dict
    daily_trend: List[Tuple[dt.date, float]]
    habit_completion: List[Tuple[str, float]]
    energy: dict
    emotions: List[Tuple[str, int]]
    habits: HabitSummary
    days: Optional[int] = None
    generated_at: dt.datetime = field(default_factory=utcnow)


def parse_mood(value: Optional[str]) -> Optional[float]:
    """Numeric mood level, or None for labels such as "n/a"."""
    if value is None:
        return None
    try:
        number = float(value.strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _as_number(value: float) -> float:
    return int(value) if float(value).is_integer() else value


def overview_stats(entries: Iterable[MoodEntry]) -> MoodOverview:
    """Count every entry; mean/highest/lowest only over numeric mood levels."""
    entries = list(entries)
    numeric = [n for n in (parse_mood(e.mood_level) for e in entries) if n is not None]
    if not numeric:
        return MoodOverview(count=len(entries), mean=0.0, highest=0, lowest=0)
    return MoodOverview(
        count=len(entries),
        mean=sum(numeric) / len(numeric),
        highest=_as_number(max(numeric)),
        lowest=_as_number(min(numeric)),
    )


def mood_distribution(entries: Iterable[MoodEntry]) -> dict:
    counts = Counter(e.mood_level for e in entries)
    return {mood: counts[mood] for mood in sorted(counts)}


def daily_mood_trend(entries: Iterable[MoodEntry]) -> List[Tuple[dt.date, float]]:
    """Per-day mean mood, oldest day first. Non-numeric levels count as 0."""
    by_day: dict[dt.date, list[float]] = defaultdict(list)
    for e in entries:
        by_day[e.timestamp.date()].append(parse_mood(e.mood_level) or 0.0)
    return [(day, sum(values) / len(values)) for day, values in sorted(by_day.items())]


def habit_completion_series(habits: Iterable[Habit], rate_for: RateFor) -> List[Tuple[str, float]]:
    return [(h.habit_name, rate_for(h)) for h in habits if h.is_active]


def energy_histogram(entries: Iterable[MoodEntry]) -> dict:
    counts = {level.value: 0 for level in EnergyLevel}
    for e in entries:
        if e.energy_level:
            counts[e.energy_level] = counts.get(e.energy_level, 0) + 1
    return counts


def emotion_frequency(entries: Iterable[MoodEntry], limit: Optional[int] = None) -> List[Tuple[str, int]]:
    limit = settings.TOP_EMOTIONS if limit is None else limit
    counts = Counter(e.emotional_context for e in entries if e.emotional_context)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return ranked[:limit]


def habit_summary(habits: Iterable[Habit], rate_for: RateFor) -> HabitSummary:
    """Totals across every habit; the completion average covers active ones only."""
    habits = list(habits)
    rates = [rate_for(h) for h in habits if h.is_active]
    return HabitSummary(
        total=len(habits),
        best_streak=max((h.streak_count or 0 for h in habits), default=0),
        average_completion=sum(rates) / len(rates) if rates else 0.0,
    )


def build_analytics(moods, habits, user_id: int, days: Optional[int] = 30) -> AnalyticsReport:
    """Assemble every chart's data for one user.

    ``moods`` and ``habits`` are a MoodRepository and a HabitRepository. A
    failed read is treated as an empty collection.
    """
    entries = moods.list_recent(user_id, days).value_or([])
    all_habits = habits.list_all(user_id).value_or([])

    rate_days = settings.COMPLETION_RATE_DAYS
    rates: dict[int, float] = {}

    def rate_for(habit: Habit) -> float:
        if habit.id not in rates:
            rates[habit.id] = habits.completion_rate(habit.id, rate_days).value_or(0.0)
        return rates[habit.id]

    return AnalyticsReport(
        overview=overview_stats(entries),
        distribution=mood_distribution(entries),
        daily_trend=daily_mood_trend(entries),
        habit_completion=habit_completion_series(all_habits, rate_for),
        energy=energy_histogram(entries),
        emotions=emotion_frequency(entries),
        habits=habit_summary(all_habits, rate_for),
        days=days,
    )


def mood_summary(moods, user_id: int, days: Optional[int] = None) -> MoodSummary:
    """Recent-mood panel figures; ``None`` where the window holds no entries."""
    days = settings.MOOD_STATS_DAYS if days is None else days
    return MoodSummary(
        average=moods.average_mood(user_id, days).value_or(None),
        count=moods.entry_count(user_id, days).value_or(0),
        most_common=moods.most_common_mood(user_id, days).value_or(None),
    )
