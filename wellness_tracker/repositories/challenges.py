from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from wellness_tracker.errors import StoreError
from wellness_tracker.models.challenge import Challenge, UserChallenge
from wellness_tracker.models.enums import ChallengeStatus, Difficulty
from wellness_tracker.models.user import User
from wellness_tracker.repositories.base import Repository
from wellness_tracker.result import ErrorKind, Result


class ChallengeRepository(Repository):
    """Catalog and enrollment access. Nothing scores progress yet."""

    def create(
        self,
        challenge_name: str,
        *,
        description: str | None = None,
        difficulty: Difficulty | str | None = None,
        duration_days: int | None = None,
        category: str | None = None,
        reward: str | None = None,
        max_participants: int | None = None,
    ) -> Result[int]:
        if not challenge_name or not challenge_name.strip():
            return Result.failure(ErrorKind.VALIDATION_FAILED, "challenge name is required")
        if difficulty is not None:
            try:
                difficulty = Difficulty(difficulty)
            except ValueError:
                return Result.failure(ErrorKind.VALIDATION_FAILED, f"unknown difficulty {difficulty!r}")

        challenge = Challenge(
            challenge_name=challenge_name.strip(),
            description=description,
            difficulty=difficulty.value if difficulty else None,
            duration_days=duration_days,
            category=category,
            reward=reward,
            max_participants=max_participants,
            created_at=self.clock(),
        )
        try:
            with self.db.transaction() as db:
                db.add(challenge)
                db.flush()
                challenge_id = challenge.id
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(challenge_id)

    def list_all(self) -> Result[list[Challenge]]:
        try:
            with self.db.transaction() as db:
                challenges = list(
                    db.execute(select(Challenge).order_by(Challenge.created_at.desc(), Challenge.id.desc())).scalars()
                )
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(challenges)

    def enroll(self, user_id: int, challenge_id: int) -> Result[int]:
        enrollment = UserChallenge(
            user_id=user_id,
            challenge_id=challenge_id,
            status=ChallengeStatus.ACTIVE.value,
            started_at=self.clock(),
        )
        try:
            with self.db.transaction() as db:
                if db.get(Challenge, challenge_id) is None:
                    return Result.failure(ErrorKind.NOT_FOUND, f"no challenge with id {challenge_id}")
                if db.get(User, user_id) is None:
                    return Result.failure(ErrorKind.NOT_FOUND, f"no user with id {user_id}")
                db.add(enrollment)
                db.flush()
                enrollment_id = enrollment.id
        except StoreError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                return Result.failure(ErrorKind.CONFLICT, "already enrolled in this challenge")
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(enrollment_id)

    def list_enrollments(self, user_id: int) -> Result[list[UserChallenge]]:
        stmt = (
            select(UserChallenge)
            .where(UserChallenge.user_id == user_id)
            .order_by(UserChallenge.started_at.desc(), UserChallenge.id.desc())
        )
        try:
            with self.db.transaction() as db:
                enrollments = list(db.execute(stmt).scalars())
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(enrollments)
