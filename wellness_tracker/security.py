"""Salted password hashing.

Stored format: base64(salt || digest(salt || password)). The salt length and
digest algorithm come from settings; both must stay stable for existing
hashes to keep verifying.
"""
import base64
import binascii
import hashlib
import hmac
import secrets

from wellness_tracker.settings import settings


def _digest(salt: bytes, password: str) -> bytes:
    algorithm = settings.PASSWORD_HASH_ALGORITHM
    try:
        hasher = hashlib.new(algorithm)
    except ValueError as exc:
        raise RuntimeError(f"{algorithm} algorithm not available") from exc
    hasher.update(salt)
    hasher.update(password.encode("utf-8"))
    return hasher.digest()


def _split(stored_hash: str) -> tuple[bytes, bytes] | None:
    try:
        raw = base64.b64decode(stored_hash.encode("ascii"), validate=True)
    except (binascii.Error, ValueError, UnicodeEncodeError, AttributeError):
        return None
    salt_len = settings.PASSWORD_SALT_BYTES
    if len(raw) <= salt_len:
        return None
    return raw[:salt_len], raw[salt_len:]


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(settings.PASSWORD_SALT_BYTES)
    return base64.b64encode(salt + _digest(salt, password)).decode("ascii")


def verify_password(password: str, stored_hash: str) -> bool:
    if password is None:
        return False
    parts = _split(stored_hash)
    if parts is None:
        return False
    salt, expected = parts
    return hmac.compare_digest(_digest(salt, password), expected)

