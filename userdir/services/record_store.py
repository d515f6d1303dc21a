from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlmodel import select

from userdir.core.exceptions.exceptions import StoreUnavailable, StoreWriteError
from userdir.models.user import User
from userdir.schemas.user import UserCreate, UserOut
from userdir.utils.log import app_logger


class RecordStore:
    """Adapter over the durable users table.

    Exposes ordered paged range reads, a total count and transactional inserts.
    Everything returned is a detached `UserOut` copy, never a live ORM instance.
    Read failures surface as `StoreUnavailable`, write failures as `StoreWriteError`.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    @contextmanager
    def _read_session(self, operation: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            if db.get_bind().dialect.name == "postgresql":
                # count and range of one page come from the same snapshot
                db.connection(execution_options={"isolation_level": "REPEATABLE READ"})
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            app_logger.error("store.read.error", operation=operation, error=str(e), exc_info=e)
            raise StoreUnavailable(operation, str(e)) from e
        finally:
            db.close()

    @contextmanager
    def _write_session(self, operation: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            app_logger.error("store.write.error", operation=operation, error=str(e), exc_info=e)
            raise StoreWriteError(operation, str(e)) from e
        finally:
            db.close()

    @staticmethod
    def _count(db: Session) -> int:
        stmt = select(func.count()).select_from(User)
        # scalar_one returns the single aggregated integer result
        return int(db.execute(stmt).scalar_one())

    @staticmethod
    def _range(db: Session, offset: int, limit: int) -> List[UserOut]:
        stmt = select(User).order_by(User.id.asc()).offset(offset).limit(limit)
        return [UserOut.model_validate(row) for row in db.execute(stmt).scalars().all()]

    @staticmethod
    def _to_row(record: UserCreate, now: datetime) -> User:
        return User(name=record.name, age=record.age, email=record.email, timestamp=now)

    def count(self) -> int:
        """Return the total number of stored users."""
        with self._read_session("count") as db:
            return self._count(db)

    def range_read(self, offset: int, limit: int) -> List[UserOut]:
        """Return at most `limit` users ordered by id ascending, starting at `offset`.

        Returns fewer at the tail and an empty list once `offset` passes the end.
        """
        if limit <= 0:
            return []
        offset = max(0, offset)
        with self._read_session("range_read") as db:
            # offsets past the end can overflow the database integer
            if offset >= self._count(db):
                return []
            return self._range(db, offset, limit)

    def read_page(self, offset: int, limit: int) -> Tuple[int, List[UserOut]]:
        """Count and range in one transaction.

        On PostgreSQL both statements share a REPEATABLE READ snapshot. SQLite runs
        them back to back on one connection, so a concurrent commit may land between
        them and the count can be ahead of the range.
        """
        with self._read_session("read_page") as db:
            total = self._count(db)
            offset = max(0, offset)
            if limit <= 0 or offset >= total:
                return total, []
            records = self._range(db, offset, limit)
            return total, records

    def insert_one(self, record: UserCreate) -> UserOut:
        """Insert a single user and return it with id and timestamp populated."""
        with self._write_session("insert_one") as db:
            row = self._to_row(record, datetime.now(timezone.utc))
            db.add(row)
            db.flush()
            created = UserOut.model_validate(row)
        return created

    def insert_batch(self, records: Sequence[UserCreate]) -> int:
        """Insert `records` in a single transaction: all rows land or none do."""
        if not records:
            return 0
        with self._write_session("insert_batch") as db:
            now = datetime.now(timezone.utc)
            db.add_all([self._to_row(r, now) for r in records])
            db.flush()
        return len(records)
