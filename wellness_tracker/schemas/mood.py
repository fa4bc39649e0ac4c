from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field, field_validator

from wellness_tracker.models.enums import EnergyLevel
from wellness_tracker.schemas.user import clean_optional


class MoodEntryUpdate(BaseModel):
    mood_level: str = Field(min_length=1, max_length=32)
    emotional_context: str | None = Field(default=None, max_length=120)
    notes: str | None = None
    activities: str | None = None
    energy_level: EnergyLevel | None = None

    @field_validator("mood_level", mode="before")
    @classmethod
    def _strip_mood(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("emotional_context", "notes", "activities")
    @classmethod
    def _optional(cls, value: str | None) -> str | None:
        return clean_optional(value)

    @field_validator("energy_level", mode="before")
    @classmethod
    def _energy(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value


class MoodEntryCreate(MoodEntryUpdate):
    user_id: int = Field(gt=0)
    timestamp: dt.datetime | None = None

    @field_validator("timestamp")
    @classmethod
    def _naive_utc(cls, value: dt.datetime | None) -> dt.datetime | None:
        # stored timestamps and day bounds are naive UTC
        if value is not None and value.tzinfo is not None:
            return value.astimezone(dt.timezone.utc).replace(tzinfo=None)
        return value
