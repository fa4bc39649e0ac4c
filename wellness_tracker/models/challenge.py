import datetime as dt
from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utcnow
from .enums import ChallengeStatus, Difficulty, check_in


class Challenge(Base):
    __tablename__ = "challenges"
    __table_args__ = (
        CheckConstraint(check_in("difficulty", Difficulty), name="ck_challenges_difficulty"),
    )

    id: Mapped[int] = mapped_column("challenge_id", Integer, primary_key=True, autoincrement=True)

    challenge_name: Mapped[str] = mapped_column(String(120))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty: Mapped[str | None] = mapped_column(String(16), nullable=True)
    duration_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)  # health, fitness, mindfulness
    reward: Mapped[str | None] = mapped_column(String(120), nullable=True)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)
    start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    participants = relationship(
        "UserChallenge", back_populates="challenge", cascade="all, delete-orphan", passive_deletes=True
    )


class UserChallenge(Base):
    __tablename__ = "user_challenges"
    __table_args__ = (
        UniqueConstraint("user_id", "challenge_id", name="uq_user_challenges_user_challenge"),
        CheckConstraint(check_in("status", ChallengeStatus), name="ck_user_challenges_status"),
    )

    id: Mapped[int] = mapped_column("user_challenge_id", Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.user_id", ondelete="CASCADE"), index=True)
    challenge_id: Mapped[int] = mapped_column(ForeignKey("challenges.challenge_id", ondelete="CASCADE"), index=True)

    progress: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    status: Mapped[str] = mapped_column(String(16), default=ChallengeStatus.ACTIVE.value)
    started_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)
    completed_at: Mapped[dt.datetime | None] = mapped_column(DateTime, nullable=True)

    user = relationship("User", back_populates="challenges")
    challenge = relationship("Challenge", back_populates="participants")
