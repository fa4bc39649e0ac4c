import datetime as dt

import pytest

from wellness_tracker.db import Database
from wellness_tracker.repositories import ChallengeRepository, HabitRepository, MoodRepository, UserRepository


class FixedClock:
    def __init__(self, now: dt.datetime):
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + dt.timedelta(**kwargs)


@pytest.fixture()
def database():
    db = Database("sqlite+pysqlite://")
    db.initialize()
    yield db
    db.close()


@pytest.fixture()
def clock():
    return FixedClock(dt.datetime(2024, 3, 15, 9, 30))


@pytest.fixture()
def users(database, clock):
    return UserRepository(database, clock=clock)


@pytest.fixture()
def habits(database, clock):
    return HabitRepository(database, clock=clock)


@pytest.fixture()
def moods(database, clock):
    return MoodRepository(database, clock=clock)


@pytest.fixture()
def challenges(database, clock):
    return ChallengeRepository(database, clock=clock)


@pytest.fixture()
def alice(users):
    return users.register("alice", "alice@x.com", "secret1", "Alice", "Liddell").unwrap()
