from datetime import datetime, timezone
from typing import List, Optional

import pytest
from sqlmodel import SQLModel

from userdir.core.exceptions.exceptions import StoreWriteError
from userdir.models.user import User  # noqa: F401
from userdir.schemas.user import UserCreate, UserOut
from userdir.services.database import build_engine, build_session_factory
from userdir.services.record_store import RecordStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryStore:
    """List-backed store with the RecordStore contract and failure injection."""

    def __init__(self, fail_on_batch: Optional[int] = None):
        self.rows: List[UserOut] = []
        self.fail_on_batch = fail_on_batch
        self.batch_calls = 0
        self.page_reads = 0

    def _append(self, record: UserCreate) -> UserOut:
        row = UserOut(
            id=len(self.rows) + 1,
            name=record.name,
            age=record.age,
            email=record.email,
            timestamp=datetime.now(timezone.utc),
        )
        self.rows.append(row)
        return row

    def count(self) -> int:
        return len(self.rows)

    def range_read(self, offset: int, limit: int) -> List[UserOut]:
        return list(self.rows[offset:offset + limit])

    def read_page(self, offset: int, limit: int):
        self.page_reads += 1
        return len(self.rows), self.range_read(offset, limit)

    def insert_one(self, record: UserCreate) -> UserOut:
        return self._append(record)

    def insert_batch(self, records) -> int:
        self.batch_calls += 1
        if self.batch_calls == self.fail_on_batch:
            raise StoreWriteError("insert_batch", "constraint violated")
        for record in records:
            self._append(record)
        return len(records)


def make_users(count: int, prefix: str = "user") -> List[UserCreate]:
    return [
        UserCreate(name=f"{prefix} {i}", age=18 + i % 60, email=f"{prefix}{i}@example.com")
        for i in range(count)
    ]


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return RecordStore(build_session_factory(engine))


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()
