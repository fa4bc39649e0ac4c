import base64

import pytest

from wellness_tracker import security
from wellness_tracker.settings import settings


def test_hash_is_salted_and_verifies():
    first = security.hash_password("secret1")
    second = security.hash_password("secret1")

    assert first != second
    assert first != "secret1"
    assert security.verify_password("secret1", first)
    assert security.verify_password("secret1", second)


def test_stored_value_is_salt_plus_digest():
    raw = base64.b64decode(security.hash_password("secret1"))
    assert len(raw) == settings.PASSWORD_SALT_BYTES + 32


def test_wrong_password_is_rejected():
    stored = security.hash_password("secret1")
    assert not security.verify_password("secret2", stored)
    assert not security.verify_password("", stored)


@pytest.mark.parametrize(
    "stored",
    ["", "not base64!!", "c2hvcnQ=", base64.b64encode(b"x" * 16).decode(), None],
)
def test_malformed_hash_returns_false(stored):
    assert security.verify_password("secret1", stored) is False


def test_truncated_digest_does_not_verify():
    stored = security.hash_password("secret1")
    raw = base64.b64decode(stored)
    truncated = base64.b64encode(raw[:-4]).decode()
    assert not security.verify_password("secret1", truncated)


def test_unknown_algorithm_is_fatal(monkeypatch):
    monkeypatch.setattr(settings, "PASSWORD_HASH_ALGORITHM", "no-such-digest")
    with pytest.raises(RuntimeError):
        security.hash_password("secret1")
