import datetime as dt
from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utcnow
from .enums import EnergyLevel, check_in


class MoodEntry(Base):
    __tablename__ = "mood_entries"
    __table_args__ = (
        CheckConstraint(check_in("energy_level", EnergyLevel), name="ck_mood_entries_energy_level"),
    )

    id: Mapped[int] = mapped_column("entry_id", Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.user_id", ondelete="CASCADE"), index=True)

    # Free text: usually "1".."10", but labels are accepted.
    mood_level: Mapped[str] = mapped_column(String(32))
    emotional_context: Mapped[str | None] = mapped_column(String(120), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    activities: Mapped[str | None] = mapped_column(Text, nullable=True)
    energy_level: Mapped[str | None] = mapped_column(String(16), nullable=True)

    timestamp: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow, index=True)

    user = relationship("User", back_populates="mood_entries")

    def __repr__(self) -> str:
        return f"MoodEntry(id={self.id!r}, mood={self.mood_level!r}, at={self.timestamp!r})"
