import datetime as dt
import logging

import pytest
from sqlalchemy import func, select

from wellness_tracker.models.habit import HabitCompletion
from wellness_tracker.repositories import habits as habits_module
from wellness_tracker.result import ErrorKind


def _completions(database, habit_id):
    with database.transaction() as db:
        return db.execute(
            select(func.count()).select_from(HabitCompletion).where(HabitCompletion.habit_id == habit_id)
        ).scalar_one()


def _backfill(database, habit_id, days_ago):
    today = dt.date(2024, 3, 15)
    with database.transaction() as db:
        for n in days_ago:
            db.add(HabitCompletion(habit_id=habit_id, completion_date=today - dt.timedelta(days=n)))


def test_create_returns_new_id(habits, alice):
    habit_id = habits.create({"user_id": alice.id, "habit_name": "  Run  ", "frequency": "daily"}).unwrap()

    habit = habits.get(habit_id).unwrap()
    assert habit.habit_name == "Run"
    assert habit.streak_count == 0
    assert habit.is_active is True
    assert habit.frequency == "daily"


def test_same_name_twice_gets_distinct_ids(habits, alice):
    first = habits.create({"user_id": alice.id, "habit_name": "Read"}).unwrap()
    second = habits.create({"user_id": alice.id, "habit_name": "Read"}).unwrap()
    assert first != second


@pytest.mark.parametrize(
    "payload",
    [
        {"user_id": 0, "habit_name": "Run"},
        {"user_id": 1, "habit_name": ""},
        {"user_id": 1, "habit_name": "   "},
        {"user_id": 1, "habit_name": "Run", "frequency": "hourly"},
    ],
)
def test_create_validation(habits, alice, payload):
    assert habits.create(payload).error is ErrorKind.VALIDATION_FAILED
    assert habits.list_all(alice.id).value == []


def test_create_for_missing_user_is_access_failure(habits):
    assert habits.create({"user_id": 42, "habit_name": "Run"}).error is ErrorKind.ACCESS_FAILURE


def test_streak_lifecycle(database, habits, alice):
    habit_id = habits.create({"user_id": alice.id, "habit_name": "Run", "frequency": "daily"}).unwrap()
    assert habits.get(habit_id).value.streak_count == 0

    assert habits.increment_streak(habit_id).value is True
    assert habits.get(habit_id).value.streak_count == 1
    assert _completions(database, habit_id) == 1

    again = habits.increment_streak(habit_id)
    assert again.ok and again.value is False
    assert habits.get(habit_id).value.streak_count == 1
    assert _completions(database, habit_id) == 1

    assert habits.reset_streak(habit_id).ok
    assert habits.get(habit_id).value.streak_count == 0
    assert habits.reset_streak(habit_id).ok
    assert habits.get(habit_id).value.streak_count == 0


def test_increment_on_next_day(habits, clock, alice):
    habit_id = habits.create({"user_id": alice.id, "habit_name": "Run"}).unwrap()
    habits.increment_streak(habit_id)
    clock.advance(days=1)
    assert habits.increment_streak(habit_id).value is True
    assert habits.get(habit_id).value.streak_count == 2
    assert habits.completion_dates(habit_id, 7).value == [dt.date(2024, 3, 15), dt.date(2024, 3, 16)]


def test_increment_unknown_habit(habits):
    assert habits.increment_streak(404).error is ErrorKind.NOT_FOUND
    assert habits.reset_streak(404).error is ErrorKind.NOT_FOUND


def test_update_leaves_streak_and_active_flag(habits, clock, alice):
    habit_id = habits.create({"user_id": alice.id, "habit_name": "Run"}).unwrap()
    habits.increment_streak(habit_id)
    clock.advance(minutes=5)

    assert habits.update(
        habit_id, {"habit_name": "Jog", "description": "5k", "category": "fitness", "frequency": "weekly"}
    ).ok

    habit = habits.get(habit_id).unwrap()
    assert (habit.habit_name, habit.description, habit.category, habit.frequency) == (
        "Jog",
        "5k",
        "fitness",
        "weekly",
    )
    assert habit.streak_count == 1
    assert habit.is_active is True
    assert habit.updated_at == clock.now


def test_update_failures(habits):
    assert habits.update(0, {"habit_name": "Jog", "frequency": "daily"}).error is ErrorKind.VALIDATION_FAILED
    assert habits.update(77, {"habit_name": "Jog", "frequency": "daily"}).error is ErrorKind.NOT_FOUND


def test_update_requires_frequency(habits, alice):
    habit_id = habits.create({"user_id": alice.id, "habit_name": "Swim", "frequency": "weekly"}).unwrap()

    assert habits.update(habit_id, {"habit_name": "Jog"}).error is ErrorKind.VALIDATION_FAILED
    assert habits.get(habit_id).value.frequency == "weekly"

    assert habits.update(habit_id, {"habit_name": "Jog", "frequency": "weekly"}).ok
    habit = habits.get(habit_id).unwrap()
    assert (habit.habit_name, habit.frequency, habit.category) == ("Jog", "weekly", None)


def test_search_matches_name_or_category(habits, clock, alice):
    run = habits.create({"user_id": alice.id, "habit_name": "Morning Run", "category": "Fitness"}).unwrap()
    clock.advance(minutes=1)
    read = habits.create({"user_id": alice.id, "habit_name": "Read", "category": "mind"}).unwrap()
    clock.advance(minutes=1)
    swim = habits.create({"user_id": alice.id, "habit_name": "Swim", "category": "fitness"}).unwrap()
    habits.soft_delete(swim)

    assert [h.id for h in habits.search(alice.id, "RUN").value] == [run]
    assert [h.id for h in habits.search(alice.id, "fitness").value] == [swim, run]
    assert [h.id for h in habits.search(alice.id, "  ").value] == [swim, read, run]
    assert habits.search(alice.id, "piano").value == []


def test_search_is_scoped_to_owner(users, habits, alice):
    bob = users.register("bob", "bob@x.com", "secret1").unwrap()
    habits.create({"user_id": bob.id, "habit_name": "Run"})
    assert habits.search(alice.id, "run").value == []


def test_soft_delete_hides_from_active_list_only(habits, clock, alice):
    run = habits.create({"user_id": alice.id, "habit_name": "Run"}).unwrap()
    clock.advance(minutes=1)
    read = habits.create({"user_id": alice.id, "habit_name": "Read"}).unwrap()

    assert [h.id for h in habits.list_active(alice.id).value] == [read, run]

    assert habits.soft_delete(run).ok
    assert [h.id for h in habits.list_active(alice.id).value] == [read]
    assert [h.id for h in habits.list_all(alice.id).value] == [read, run]
    assert habits.get(run).value.is_active is False


def test_hard_delete_removes_completions(database, habits, alice):
    habit_id = habits.create({"user_id": alice.id, "habit_name": "Run"}).unwrap()
    habits.increment_streak(habit_id)

    assert habits.hard_delete(habit_id).ok
    assert habits.get(habit_id).error is ErrorKind.NOT_FOUND
    assert _completions(database, habit_id) == 0
    assert habits.hard_delete(habit_id).error is ErrorKind.NOT_FOUND


def test_completion_rate_counts_window_only(database, habits, alice):
    habit_id = habits.create({"user_id": alice.id, "habit_name": "Run"}).unwrap()
    _backfill(database, habit_id, [*range(10), 30, 45])

    assert habits.completion_rate(habit_id, 30).value == pytest.approx(10 / 30 * 100)
    assert habits.completion_rate(habit_id, 7).value == pytest.approx(100.0)


def test_completion_rate_bounds(database, habits, alice):
    habit_id = habits.create({"user_id": alice.id, "habit_name": "Run"}).unwrap()
    assert habits.completion_rate(habit_id, 30).value == 0.0

    _backfill(database, habit_id, range(30))
    assert habits.completion_rate(habit_id, 30).value == pytest.approx(100.0)

    assert habits.completion_rate(habit_id, 0).error is ErrorKind.VALIDATION_FAILED
    assert habits.completion_rate(999, 30).error is ErrorKind.NOT_FOUND


def test_completion_rate_per_frequency(database, habits, alice):
    habit_id = habits.create({"user_id": alice.id, "habit_name": "Swim", "frequency": "weekly"}).unwrap()
    _backfill(database, habit_id, [0, 7, 14])

    assert habits.completion_rate(habit_id, 28).value == pytest.approx(3 / 28 * 100)
    assert habits.completion_rate(habit_id, 28, per_frequency=True).value == pytest.approx(75.0)

    _backfill(database, habit_id, [1, 2, 3, 4, 5])
    assert habits.completion_rate(habit_id, 28, per_frequency=True).value == 100.0


def test_concurrent_completion_reports_already_done(database, habits, alice, monkeypatch, caplog):
    habit_id = habits.create({"user_id": alice.id, "habit_name": "Run"}).unwrap()
    # another writer records today's completion after the same-day check ran
    _backfill(database, habit_id, [0])
    monkeypatch.setattr(habits_module, "_completed_on", lambda *args: False)
    caplog.set_level(logging.INFO)

    result = habits.increment_streak(habit_id)

    assert result.ok and result.value is False
    assert habits.get(habit_id).value.streak_count == 0
    assert _completions(database, habit_id) == 1
    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert any("Constraint conflict" in r.getMessage() for r in caplog.records)
