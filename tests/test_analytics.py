import datetime as dt

import pytest

from wellness_tracker.models.base import utcnow
from wellness_tracker.models.habit import Habit
from wellness_tracker.models.mood import MoodEntry
from wellness_tracker.services import analytics


def _entry(mood, day=15, energy=None, emotion=None):
    return MoodEntry(
        mood_level=mood,
        energy_level=energy,
        emotional_context=emotion,
        timestamp=dt.datetime(2024, 3, day, 12, 0),
    )


def test_overview_skips_text_levels_for_mean_only():
    entries = [_entry("4"), _entry("6"), _entry("8"), _entry("n/a")]
    stats = analytics.overview_stats(entries)
    assert stats.count == 4
    assert stats.mean == pytest.approx(6.0)
    assert stats.highest == 8
    assert stats.lowest == 4


def test_overview_empty():
    stats = analytics.overview_stats([])
    assert (stats.count, stats.mean, stats.highest, stats.lowest) == (0, 0.0, 0, 0)

    only_text = analytics.overview_stats([_entry("meh")])
    assert (only_text.count, only_text.mean, only_text.highest, only_text.lowest) == (1, 0.0, 0, 0)


def test_mood_distribution_sorted_by_key():
    dist = analytics.mood_distribution([_entry("7"), _entry("10"), _entry("7"), _entry("3")])
    assert list(dist.items()) == [("10", 1), ("3", 1), ("7", 2)]


def test_daily_trend_ascending_with_text_as_zero():
    entries = [_entry("8", day=16), _entry("4", day=14), _entry("6", day=14), _entry("n/a", day=16)]
    assert analytics.daily_mood_trend(entries) == [
        (dt.date(2024, 3, 14), pytest.approx(5.0)),
        (dt.date(2024, 3, 16), pytest.approx(4.0)),
    ]


def test_energy_histogram_keeps_unknown_labels():
    entries = [_entry("5", energy="low"), _entry("5", energy="low"), _entry("5", energy="wired"), _entry("5")]
    assert analytics.energy_histogram(entries) == {"low": 2, "medium": 0, "high": 0, "wired": 1}


def test_emotion_frequency_top_n():
    entries = [_entry("5", emotion=name) for name in ["calm", "calm", "happy", "", None, "tired", "tired", "tired"]]
    assert analytics.emotion_frequency(entries) == [("tired", 3), ("calm", 2), ("happy", 1)]

    many = [_entry("5", emotion=f"e{i:02d}") for i in range(15)]
    assert len(analytics.emotion_frequency(many)) == 10
    assert len(analytics.emotion_frequency(many, limit=3)) == 3


def test_habit_series_and_summary():
    run = Habit(id=1, habit_name="Run", is_active=True, streak_count=4)
    read = Habit(id=2, habit_name="Read", is_active=True, streak_count=1)
    old = Habit(id=3, habit_name="Smoke-free", is_active=False, streak_count=9)
    rates = {1: 50.0, 2: 10.0, 3: 90.0}

    def rate_for(habit):
        return rates[habit.id]

    assert analytics.habit_completion_series([run, read, old], rate_for) == [("Run", 50.0), ("Read", 10.0)]

    summary = analytics.habit_summary([run, read, old], rate_for)
    assert summary.total == 3
    assert summary.best_streak == 9
    assert summary.average_completion == pytest.approx(30.0)

    assert analytics.habit_summary([], rate_for) == analytics.HabitSummary(0, 0, 0.0)


def test_build_analytics_from_repositories(habits, moods, alice):
    habit_id = habits.create({"user_id": alice.id, "habit_name": "Run"}).unwrap()
    habits.increment_streak(habit_id)
    for mood, energy, emotion in [("4", "low", "tired"), ("8", "high", "happy"), ("6", "medium", "happy")]:
        moods.create({"user_id": alice.id, "mood_level": mood, "energy_level": energy, "emotional_context": emotion})

    before = utcnow()
    report = analytics.build_analytics(moods, habits, alice.id, days=30)

    assert before <= report.generated_at <= utcnow()

    assert report.overview.count == 3
    assert report.overview.mean == pytest.approx(6.0)
    assert report.distribution == {"4": 1, "6": 1, "8": 1}
    assert report.daily_trend == [(dt.date(2024, 3, 15), pytest.approx(6.0))]
    assert report.habit_completion == [("Run", pytest.approx(100 / 30))]
    assert report.energy == {"low": 1, "medium": 1, "high": 1}
    assert report.emotions == [("happy", 2), ("tired", 1)]
    assert report.habits.best_streak == 1


def test_mood_summary(moods, alice):
    empty = analytics.mood_summary(moods, alice.id)
    assert (empty.average, empty.count, empty.most_common) == (None, 0, None)

    for mood in ("5", "7", "7"):
        moods.create({"user_id": alice.id, "mood_level": mood})
    summary = analytics.mood_summary(moods, alice.id)
    assert summary.average == pytest.approx(19 / 3)
    assert summary.count == 3
    assert summary.most_common == "7"
