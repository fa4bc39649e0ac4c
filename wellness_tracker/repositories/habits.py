from __future__ import annotations

import datetime as dt
import logging
import math
from collections.abc import Mapping
from typing import Any

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wellness_tracker.errors import StoreError
from wellness_tracker.models.enums import Frequency
from wellness_tracker.models.habit import Habit, HabitCompletion
from wellness_tracker.repositories.base import Repository, not_positive, validated
from wellness_tracker.result import ErrorKind, Result
from wellness_tracker.schemas.habit import HabitCreate, HabitUpdate

logger = logging.getLogger(__name__)

# Expected completions per window day for each frequency.
_PERIOD_DAYS = {
    Frequency.DAILY.value: 1,
    Frequency.WEEKLY.value: 7,
    Frequency.MONTHLY.value: 30,
}


def _missing(habit_id: int) -> Result:
    return Result.failure(ErrorKind.NOT_FOUND, f"no habit with id {habit_id}")


def _completed_on(db: Session, habit_id: int, day: dt.date) -> bool:
    stmt = select(HabitCompletion.id).where(
        and_(HabitCompletion.habit_id == habit_id, HabitCompletion.completion_date == day)
    )
    return db.execute(stmt).first() is not None


class HabitRepository(Repository):
    def create(self, data: HabitCreate | Mapping[str, Any]) -> Result[int]:
        checked = validated(HabitCreate, data)
        if not checked:
            return Result.failure(checked.error, checked.message)
        payload = checked.value

        now = self.clock()
        habit = Habit(
            user_id=payload.user_id,
            habit_name=payload.habit_name,
            description=payload.description,
            category=payload.category,
            frequency=payload.frequency.value,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        try:
            with self.db.transaction() as db:
                db.add(habit)
                db.flush()
                habit_id = habit.id
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        logger.info("Created habit %r (id=%s) for user %s", payload.habit_name, habit_id, payload.user_id)
        return Result.success(habit_id)

    def get(self, habit_id: int) -> Result[Habit]:
        try:
            with self.db.transaction() as db:
                habit = db.get(Habit, habit_id)
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        if habit is None:
            return _missing(habit_id)
        return Result.success(habit)

    def list_active(self, user_id: int) -> Result[list[Habit]]:
        return self._list(user_id, active_only=True)

    def list_all(self, user_id: int) -> Result[list[Habit]]:
        return self._list(user_id, active_only=False)

    def _list(self, user_id: int, *, active_only: bool) -> Result[list[Habit]]:
        stmt = select(Habit).where(Habit.user_id == user_id)
        if active_only:
            stmt = stmt.where(Habit.is_active.is_(True))
        stmt = stmt.order_by(Habit.created_at.desc(), Habit.id.desc())
        try:
            with self.db.transaction() as db:
                habits = list(db.execute(stmt).scalars())
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(habits)

    def search(self, user_id: int, text: str) -> Result[list[Habit]]:
        """Case-insensitive substring match on name or category, active or not."""
        needle = (text or "").strip().lower()
        if not needle:
            return self.list_all(user_id)
        pattern = f"%{needle}%"
        stmt = (
            select(Habit)
            .where(
                Habit.user_id == user_id,
                or_(func.lower(Habit.habit_name).like(pattern), func.lower(Habit.category).like(pattern)),
            )
            .order_by(Habit.created_at.desc(), Habit.id.desc())
        )
        try:
            with self.db.transaction() as db:
                habits = list(db.execute(stmt).scalars())
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(habits)

    def update(self, habit_id: int, data: HabitUpdate | Mapping[str, Any]) -> Result[bool]:
        """Replace name, description, category and frequency as a whole.

        Omitted optional fields are cleared; frequency is required. Streak and
        active flag are left alone.
        """
        if not_positive(habit_id):
            return Result.failure(ErrorKind.VALIDATION_FAILED, "invalid habit id")
        checked = validated(HabitUpdate, data)
        if not checked:
            return Result.failure(checked.error, checked.message)
        patch = checked.value
        return self._update(
            habit_id,
            habit_name=patch.habit_name,
            description=patch.description,
            category=patch.category,
            frequency=patch.frequency.value,
        )

    def soft_delete(self, habit_id: int) -> Result[bool]:
        return self._update(habit_id, is_active=False)

    def reset_streak(self, habit_id: int) -> Result[bool]:
        return self._update(habit_id, streak_count=0)

    def _update(self, habit_id: int, **values: Any) -> Result[bool]:
        values["updated_at"] = self.clock()
        stmt = update(Habit).where(Habit.id == habit_id).values(**values)
        try:
            with self.db.transaction() as db:
                affected = db.execute(stmt, execution_options={"synchronize_session": False}).rowcount
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        if not affected:
            return _missing(habit_id)
        return Result.success(True)

    def hard_delete(self, habit_id: int) -> Result[bool]:
        """Remove the habit for good; its completion records go with it."""
        try:
            with self.db.transaction() as db:
                affected = db.execute(delete(Habit).where(Habit.id == habit_id)).rowcount
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        if not affected:
            return _missing(habit_id)
        logger.info("Permanently deleted habit id=%s", habit_id)
        return Result.success(True)

    def increment_streak(self, habit_id: int) -> Result[bool]:
        """Mark the habit done today.

        ``success(True)``: completion recorded and streak incremented.
        ``success(False)``: already completed today, nothing changed.
        """
        today = self.today()
        try:
            with self.db.transaction() as db:
                if db.get(Habit, habit_id) is None:
                    return _missing(habit_id)
                if _completed_on(db, habit_id, today):
                    logger.info("Habit %s already completed on %s", habit_id, today)
                    return Result.success(False)

                db.add(HabitCompletion(habit_id=habit_id, completion_date=today, created_at=self.clock()))
                db.flush()
                affected = db.execute(
                    update(Habit)
                    .where(Habit.id == habit_id)
                    .values(streak_count=Habit.streak_count + 1, updated_at=self.clock()),
                    execution_options={"synchronize_session": False},
                ).rowcount
        except StoreError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                # lost a race with another completion for the same day
                logger.info("Habit %s completed concurrently on %s", habit_id, today)
                return Result.success(False)
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(affected > 0)

    def completion_rate(self, habit_id: int, days: int, *, per_frequency: bool = False) -> Result[float]:
        """Percentage (0-100) of completions over the last ``days`` calendar days.

        By default every habit is measured against one completion per day.
        ``per_frequency`` measures weekly and monthly habits against the number
        of periods in the window instead, capped at 100.
        """
        if days <= 0:
            return Result.failure(ErrorKind.VALIDATION_FAILED, "days must be positive")
        start, end = self.window_start(days), self.today()
        try:
            with self.db.transaction() as db:
                habit = db.get(Habit, habit_id)
                if habit is None:
                    return _missing(habit_id)
                completed = db.execute(
                    select(func.count())
                    .select_from(HabitCompletion)
                    .where(
                        HabitCompletion.habit_id == habit_id,
                        HabitCompletion.is_completed.is_(True),
                        HabitCompletion.completion_date >= start,
                        HabitCompletion.completion_date <= end,
                    )
                ).scalar_one()
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))

        expected = days
        if per_frequency:
            expected = math.ceil(days / _PERIOD_DAYS.get(habit.frequency, 1))
        return Result.success(min(100.0, completed / expected * 100))

    def completion_dates(self, habit_id: int, days: int) -> Result[list[dt.date]]:
        if days <= 0:
            return Result.failure(ErrorKind.VALIDATION_FAILED, "days must be positive")
        stmt = (
            select(HabitCompletion.completion_date)
            .where(
                HabitCompletion.habit_id == habit_id,
                HabitCompletion.completion_date >= self.window_start(days),
                HabitCompletion.completion_date <= self.today(),
            )
            .order_by(HabitCompletion.completion_date.asc())
        )
        try:
            with self.db.transaction() as db:
                dates = list(db.execute(stmt).scalars())
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(dates)
