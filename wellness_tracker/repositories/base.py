from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Mapping
from typing import Any, Callable, TypeVar

from pydantic import BaseModel, ValidationError

from wellness_tracker.db import Database
from wellness_tracker.models.base import utcnow
from wellness_tracker.result import ErrorKind, Result

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)
Clock = Callable[[], dt.datetime]


def validated(schema: type[SchemaT], data: SchemaT | Mapping[str, Any]) -> Result[SchemaT]:
    if isinstance(data, schema):
        return Result.success(data)
    try:
        return Result.success(schema.model_validate(data))
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}" for err in exc.errors()
        )
        logger.info("Rejected %s: %s", schema.__name__, errors)
        return Result.failure(ErrorKind.VALIDATION_FAILED, errors)


def not_positive(value: int | None) -> bool:
    return value is None or value <= 0


def as_date(value: dt.date | str) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not value or not value.strip():
        raise ValueError("empty date")
    return dt.date.fromisoformat(value.strip())


def day_bounds(day: dt.date) -> tuple[dt.datetime, dt.datetime]:
    start = dt.datetime.combine(day, dt.time.min)
    end = start + dt.timedelta(days=1)
    return start, end


class Repository:
    def __init__(self, db: Database, clock: Clock | None = None) -> None:
        self.db = db
        self.clock: Clock = clock or utcnow

    def today(self) -> dt.date:
        return self.clock().date()

    def window_start(self, days: int) -> dt.date:
        """First calendar day of a trailing window of ``days`` days ending today."""
        return self.today() - dt.timedelta(days=max(days, 1) - 1)
