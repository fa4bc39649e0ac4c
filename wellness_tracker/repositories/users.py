from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from wellness_tracker.errors import StoreError
from wellness_tracker.models.user import User
from wellness_tracker.repositories.base import Repository, not_positive, validated
from wellness_tracker.result import ErrorKind, Result
from wellness_tracker.schemas.user import PasswordChange, UserProfileUpdate, UserRegister
from wellness_tracker.security import hash_password, verify_password

logger = logging.getLogger(__name__)


def _by_username(db: Session, username: str) -> User | None:
    return db.execute(select(User).where(User.username == username)).scalar_one_or_none()


def _by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def _found(user: User | None, what: str) -> Result[User]:
    if user is None:
        return Result.failure(ErrorKind.NOT_FOUND, f"no user with {what}")
    return Result.success(user)


class UserRepository(Repository):
    def authenticate(self, username: str, password: str) -> Result[User]:
        if not username or not password:
            return Result.failure(ErrorKind.VALIDATION_FAILED, "username and password are required")
        try:
            with self.db.transaction() as db:
                user = _by_username(db, username.strip())
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", username)
            return Result.failure(ErrorKind.NOT_FOUND, "invalid username or password")
        return Result.success(user)

    def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> Result[User]:
        checked = validated(
            UserRegister,
            {
                "username": username,
                "email": email,
                "password": password,
                "first_name": first_name,
                "last_name": last_name,
            },
        )
        if not checked:
            return Result.failure(checked.error, checked.message)
        data = checked.value

        try:
            with self.db.transaction() as db:
                if _by_username(db, data.username) is not None:
                    logger.info("Registration rejected, username taken: %s", data.username)
                    return Result.failure(ErrorKind.CONFLICT, "username already exists")
                if _by_email(db, data.email) is not None:
                    logger.info("Registration rejected, email taken: %s", data.email)
                    return Result.failure(ErrorKind.CONFLICT, "email already exists")

                user = User(
                    username=data.username,
                    email=data.email,
                    password_hash=hash_password(data.password),
                    first_name=data.first_name,
                    last_name=data.last_name,
                )
                db.add(user)
                db.flush()
                db.refresh(user)
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))

        logger.info("Registered user %s (id=%s)", user.username, user.id)
        return Result.success(user)

    def get_by_id(self, user_id: int) -> Result[User]:
        try:
            with self.db.transaction() as db:
                user = db.get(User, user_id)
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return _found(user, f"id {user_id}")

    def get_by_username(self, username: str) -> Result[User]:
        try:
            with self.db.transaction() as db:
                user = _by_username(db, username)
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return _found(user, f"username {username!r}")

    def get_by_email(self, email: str) -> Result[User]:
        try:
            with self.db.transaction() as db:
                user = _by_email(db, email)
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return _found(user, f"email {email!r}")

    def update_profile(self, user_id: int, data: UserProfileUpdate | Mapping[str, Any]) -> Result[bool]:
        if not_positive(user_id):
            return Result.failure(ErrorKind.VALIDATION_FAILED, "invalid user id")
        checked = validated(UserProfileUpdate, data)
        if not checked:
            return Result.failure(checked.error, checked.message)
        patch = checked.value

        try:
            with self.db.transaction() as db:
                user = db.get(User, user_id)
                if user is None:
                    return Result.failure(ErrorKind.NOT_FOUND, f"no user with id {user_id}")
                taken = db.execute(
                    select(User.id).where(and_(User.email == patch.email, User.id != user_id))
                ).first()
                if taken is not None:
                    return Result.failure(ErrorKind.CONFLICT, "email already exists")
                user.email = patch.email
                user.first_name = patch.first_name
                user.last_name = patch.last_name
                user.updated_at = self.clock()
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(True)

    def change_password(self, user_id: int, old_password: str, new_password: str) -> Result[bool]:
        checked = validated(PasswordChange, {"old_password": old_password, "new_password": new_password})
        if not checked:
            return Result.failure(checked.error, checked.message)

        try:
            with self.db.transaction() as db:
                user = db.get(User, user_id)
                if user is None:
                    return Result.failure(ErrorKind.NOT_FOUND, f"no user with id {user_id}")
                if not verify_password(old_password, user.password_hash):
                    logger.info("Password change rejected for user id=%s", user_id)
                    return Result.failure(ErrorKind.VALIDATION_FAILED, "current password is incorrect")
                user.password_hash = hash_password(new_password)
                user.updated_at = self.clock()
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(True)

    def delete(self, user_id: int) -> Result[bool]:
        """Hard delete; the store cascades to habits, moods and enrollments."""
        try:
            with self.db.transaction() as db:
                user = db.get(User, user_id)
                if user is None:
                    return Result.failure(ErrorKind.NOT_FOUND, f"no user with id {user_id}")
                db.delete(user)
        except StoreError as exc:
            return Result.failure(ErrorKind.ACCESS_FAILURE, str(exc))
        return Result.success(True)
