from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from wellness_tracker.settings import settings


def clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_email(value: str) -> str:
    value = value.strip()
    if "@" not in value:
        raise ValueError("email must contain '@'")
    return value


def validate_new_password(value: str) -> str:
    if len(value) < settings.PASSWORD_MIN_LENGTH:
        raise ValueError(f"password must be at least {settings.PASSWORD_MIN_LENGTH} characters")
    return value


class UserRegister(BaseModel):
    username: str
    email: str = Field(min_length=3, max_length=255)
    password: str
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)

    @field_validator("username")
    @classmethod
    def _username_length(cls, value: str) -> str:
        value = value.strip()
        if not settings.USERNAME_MIN_LENGTH <= len(value) <= settings.USERNAME_MAX_LENGTH:
            raise ValueError(
                f"username must be {settings.USERNAME_MIN_LENGTH}-{settings.USERNAME_MAX_LENGTH} characters"
            )
        return value

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return validate_email(value)

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        return validate_new_password(value)

    @field_validator("first_name", "last_name")
    @classmethod
    def _names(cls, value: str | None) -> str | None:
        return clean_optional(value)


class UserProfileUpdate(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return validate_email(value)

    @field_validator("first_name", "last_name")
    @classmethod
    def _names(cls, value: str | None) -> str | None:
        return clean_optional(value)


class PasswordChange(BaseModel):
    old_password: str = Field(min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _new_password(cls, value: str) -> str:
        return validate_new_password(value)
