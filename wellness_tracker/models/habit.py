import datetime as dt
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utcnow
from .enums import Frequency, check_in


class Habit(Base):
    __tablename__ = "habits"
    __table_args__ = (
        CheckConstraint(check_in("frequency", Frequency), name="ck_habits_frequency"),
        CheckConstraint("streak_count >= 0", name="ck_habits_streak_count"),
    )

    id: Mapped[int] = mapped_column("habit_id", Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.user_id", ondelete="CASCADE"), index=True)

    habit_name: Mapped[str] = mapped_column(String(120))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    frequency: Mapped[str] = mapped_column(String(16), default=Frequency.DAILY.value)
    streak_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1")

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)

    user = relationship("User", back_populates="habits")
    completions = relationship(
        "HabitCompletion", back_populates="habit", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"Habit(id={self.id!r}, name={self.habit_name!r}, streak={self.streak_count!r})"


class HabitCompletion(Base):
    __tablename__ = "habit_tracking"
    __table_args__ = (
        UniqueConstraint("habit_id", "completion_date", name="uq_habit_tracking_habit_day"),
    )

    id: Mapped[int] = mapped_column("tracking_id", Integer, primary_key=True, autoincrement=True)
    habit_id: Mapped[int] = mapped_column(ForeignKey("habits.habit_id", ondelete="CASCADE"), index=True)
    completion_date: Mapped[dt.date] = mapped_column(Date, index=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1")
    notes: Mapped[str | None] = mapped_column(String(300), nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)

    habit = relationship("Habit", back_populates="completions")
