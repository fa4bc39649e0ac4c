from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from wellness_tracker.models.enums import Frequency
from wellness_tracker.schemas.user import clean_optional


class HabitCreate(BaseModel):
    user_id: int = Field(gt=0)
    habit_name: str = Field(min_length=1, max_length=120)
    description: str | None = None
    category: str | None = Field(default=None, max_length=64)
    frequency: Frequency = Frequency.DAILY

    @field_validator("habit_name", mode="before")
    @classmethod
    def _strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("description", "category")
    @classmethod
    def _optional(cls, value: str | None) -> str | None:
        return clean_optional(value)


class HabitUpdate(BaseModel):
    habit_name: str = Field(min_length=1, max_length=120)
    description: str | None = None
    category: str | None = Field(default=None, max_length=64)
    frequency: Frequency

    @field_validator("habit_name", mode="before")
    @classmethod
    def _strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("description", "category")
    @classmethod
    def _optional(cls, value: str | None) -> str | None:
        return clean_optional(value)
