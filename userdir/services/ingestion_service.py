import math
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from userdir.core.exceptions.exceptions import StoreWriteError
from userdir.schemas.user import UserCreate
from userdir.services.pagination_cache import PaginationCache
from userdir.services.record_store import RecordStore
from userdir.utils.log import app_logger

DEFAULT_BATCH_SIZE = 1000


@dataclass(frozen=True)
class IngestionProgress:
    batch_number: int
    total_batches: int
    inserted: int
    total: int


@dataclass(frozen=True)
class IngestionSummary:
    inserted_count: int
    elapsed_seconds: float
    batches: int


class IngestionBatcher:
    """Commit a large set of users as consecutive fixed-size batches.

    Each batch is its own transaction and batches run one after another. When a
    batch fails the remaining ones are skipped and `StoreWriteError` is raised;
    batches already committed stay committed. The cache is invalidated once per
    call, after the last committed batch, never once per batch.
    """

    def __init__(
        self,
        store: RecordStore,
        cache: PaginationCache,
        batch_size: int = DEFAULT_BATCH_SIZE,
        clock: Callable[[], float] = time.perf_counter,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.store = store
        self.cache = cache
        self.batch_size = batch_size
        self._clock = clock

    def _invalidate(self) -> None:
        # a cache failure must not mask the outcome of the batches
        try:
            dropped = self.cache.invalidate_all()
            app_logger.info("cache.invalidated", reason="ingest", dropped=dropped)
        except Exception as e:
            app_logger.warning("cache.invalidate.failed", reason="ingest", error=str(e))

    def ingest(
        self,
        records: Sequence[UserCreate],
        batch_size: Optional[int] = None,
        on_progress: Optional[Callable[[IngestionProgress], None]] = None,
    ) -> IngestionSummary:
        size = batch_size or self.batch_size
        if size < 1:
            raise ValueError("batch_size must be at least 1")

        total = len(records)
        total_batches = math.ceil(total / size)
        started = self._clock()
        inserted = 0
        failed = False
        app_logger.info("ingest.start", total=total, batch_size=size, batches=total_batches)

        try:
            for batch_number, start in enumerate(range(0, total, size), start=1):
                batch = records[start:start + size]
                try:
                    inserted += self.store.insert_batch(batch)
                except StoreWriteError as e:
                    failed = True
                    e.batch_number = batch_number
                    e.batch_size = len(batch)
                    e.committed = inserted
                    e.context.update(batch_number=batch_number, batch_size=len(batch), committed=inserted)
                    app_logger.error(
                        "ingest.batch.failed",
                        batch=batch_number,
                        committed=inserted,
                        skipped_batches=total_batches - batch_number,
                    )
                    raise

                app_logger.info(f"saved batch {batch_number} of users", inserted=inserted, total=total)
                if on_progress is not None:
                    on_progress(IngestionProgress(batch_number, total_batches, inserted, total))
        finally:
            # once per call, including after a partial failure; skipped only when nothing was written
            if inserted or not failed:
                self._invalidate()

        elapsed = self._clock() - started
        app_logger.info("ingest.finished", inserted=inserted, duration_seconds=round(elapsed, 3))
        return IngestionSummary(inserted_count=inserted, elapsed_seconds=elapsed, batches=total_batches)
