from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Float, cast, delete, func, or_, select, update

from wellness_tracker.errors import StoreError
from wellness_tracker.models.mood import MoodEntry
from wellness_tracker.repositories.base import Repository, as_date, day_bounds, not_positive, validated
from wellness_tracker.result import ErrorKind, Result
from wellness_tracker.schemas.mood import MoodEntryCreate, MoodEntryUpdate

logger = logging.getLogger(__name__)


class MoodRepository(Repository):
    def create(self, data: MoodEntryCreate | Mapping[str, Any]) -> Result[int]:
        checked = validated(MoodEntryCreate, data)
        if not checked:
            return Result.failure(checked.error, checked.message)
        payload = checked.value

        entry = MoodEntry(
            user_id=payload.user_id,
            mood_level=payload.mood_level,
            emotional_context=payload.emotional_context,
            notes=payload.notes,
            activities=payload.activities,
            energy_level=payload.energy_level.value if payload.energy_level else None,
            timestamp=payload.timestamp or self.clock(),
        )
        try:
            with self.db.transaction() as db:
                db.add(entry)
                db.flush()
                entry_id = entry.id
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(entry_id)

    def get(self, entry_id: int) -> Result[MoodEntry]:
        try:
            with self.db.transaction() as db:
                entry = db.get(MoodEntry, entry_id)
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        if entry is None:
            return Result.failure(ErrorKind.NOT_FOUND, f"no mood entry with id {entry_id}")
        return Result.success(entry)

    def _fetch(self, user_id: int, *criteria) -> Result[list[MoodEntry]]:
        stmt = (
            select(MoodEntry)
            .where(MoodEntry.user_id == user_id, *criteria)
            .order_by(MoodEntry.timestamp.desc(), MoodEntry.id.desc())
        )
        try:
            with self.db.transaction() as db:
                entries = list(db.execute(stmt).scalars())
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(entries)

    def list_all(self, user_id: int) -> Result[list[MoodEntry]]:
        return self._fetch(user_id)

    def list_by_date_range(
        self, user_id: int, start_date: dt.date | str, end_date: dt.date | str
    ) -> Result[list[MoodEntry]]:
        """Entries whose timestamp falls on a day in ``[start_date, end_date]``.

        Dates may be given as ISO strings (YYYY-MM-DD).
        """
        try:
            start_date, end_date = as_date(start_date), as_date(end_date)
        except ValueError as exc:
            return Result.failure(ErrorKind.VALIDATION_FAILED, str(exc))
        if end_date < start_date:
            return Result.failure(ErrorKind.VALIDATION_FAILED, "end date is before start date")
        start, _ = day_bounds(start_date)
        _, end = day_bounds(end_date)
        return self._fetch(user_id, MoodEntry.timestamp >= start, MoodEntry.timestamp < end)

    def list_recent(self, user_id: int, days: int | None) -> Result[list[MoodEntry]]:
        """Last ``days`` days, or everything when ``days`` is None."""
        if days is None:
            return self.list_all(user_id)
        return self.list_by_date_range(user_id, self.window_start(days), self.today())

    def search(self, user_id: int, text: str) -> Result[list[MoodEntry]]:
        needle = (text or "").strip().lower()
        if not needle:
            return self.list_all(user_id)
        pattern = f"%{needle}%"
        columns = (
            MoodEntry.mood_level,
            MoodEntry.emotional_context,
            MoodEntry.energy_level,
            MoodEntry.activities,
            MoodEntry.notes,
        )
        return self._fetch(user_id, or_(*(func.lower(column).like(pattern) for column in columns)))

    def update(self, entry_id: int, data: MoodEntryUpdate | Mapping[str, Any]) -> Result[bool]:
        """Replace every field except owner and timestamp; omitted optional fields are cleared."""
        if not_positive(entry_id):
            return Result.failure(ErrorKind.VALIDATION_FAILED, "invalid mood entry id")
        checked = validated(MoodEntryUpdate, data)
        if not checked:
            return Result.failure(checked.error, checked.message)
        patch = checked.value

        stmt = (
            update(MoodEntry)
            .where(MoodEntry.id == entry_id)
            .values(
                mood_level=patch.mood_level,
                emotional_context=patch.emotional_context,
                notes=patch.notes,
                activities=patch.activities,
                energy_level=patch.energy_level.value if patch.energy_level else None,
            )
        )
        try:
            with self.db.transaction() as db:
                affected = db.execute(stmt, execution_options={"synchronize_session": False}).rowcount
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        if not affected:
            return Result.failure(ErrorKind.NOT_FOUND, f"no mood entry with id {entry_id}")
        return Result.success(True)

    def delete(self, entry_id: int) -> Result[bool]:
        try:
            with self.db.transaction() as db:
                affected = db.execute(delete(MoodEntry).where(MoodEntry.id == entry_id)).rowcount
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        if not affected:
            return Result.failure(ErrorKind.NOT_FOUND, f"no mood entry with id {entry_id}")
        return Result.success(True)

    def _window(self, days: int) -> dt.datetime:
        return day_bounds(self.window_start(days))[0]

    def average_mood(self, user_id: int, days: int) -> Result[float]:
        """Mean mood level over the window; text levels count as 0, as the store casts them.

        ``NOT_FOUND`` when the window holds no entries, so "no data" never
        reads as an average of zero.
        """
        stmt = select(func.avg(cast(MoodEntry.mood_level, Float)), func.count()).where(
            MoodEntry.user_id == user_id, MoodEntry.timestamp >= self._window(days)
        )
        try:
            with self.db.transaction() as db:
                average, count = db.execute(stmt).one()
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        if not count:
            return Result.failure(ErrorKind.NOT_FOUND, "no mood entries in window")
        return Result.success(float(average or 0.0))

    def entry_count(self, user_id: int, days: int) -> Result[int]:
        stmt = select(func.count()).select_from(MoodEntry).where(
            MoodEntry.user_id == user_id, MoodEntry.timestamp >= self._window(days)
        )
        try:
            with self.db.transaction() as db:
                count = db.execute(stmt).scalar_one()
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(int(count))

    def most_common_mood(self, user_id: int, days: int) -> Result[str]:
        """Mode of the raw mood strings; ties go to the lexicographically smallest."""
        occurrences = func.count().label("occurrences")
        stmt = (
            select(MoodEntry.mood_level, occurrences)
            .where(MoodEntry.user_id == user_id, MoodEntry.timestamp >= self._window(days))
            .group_by(MoodEntry.mood_level)
            .order_by(occurrences.desc(), MoodEntry.mood_level.asc())
            .limit(1)
        )
        try:
            with self.db.transaction() as db:
                row = db.execute(stmt).first()
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        if row is None:
            return Result.failure(ErrorKind.NOT_FOUND, "no mood entries in window")
        return Result.success(row[0])
