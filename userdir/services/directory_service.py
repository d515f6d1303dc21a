from typing import Dict, Optional, Sequence

from userdir.core.exceptions.exceptions import AppError
from userdir.schemas.user import PageResult, UserCreate, UserOut
from userdir.services.ingestion_service import IngestionBatcher, IngestionSummary
from userdir.services.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, build_page, page_offset, paginate
from userdir.services.pagination_cache import CacheOptions, PageKey, PaginationCache
from userdir.services.record_store import RecordStore
from userdir.utils.log import app_logger


class DirectoryService:
    """Read-through, write-invalidate front for the user store.

    Owns its page cache and ingestion batcher. Requests are independent: the
    cache is the only state shared between them. Every write invalidates every
    cached page.
    """

    def __init__(
        self,
        store: RecordStore,
        cache: Optional[PaginationCache] = None,
        batcher: Optional[IngestionBatcher] = None,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self.store = store
        self.cache = cache if cache is not None else PaginationCache()
        self.batcher = batcher if batcher is not None else IngestionBatcher(store, self.cache)
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    @classmethod
    def from_settings(cls, store: RecordStore, settings) -> "DirectoryService":
        cache = PaginationCache(CacheOptions.from_settings(settings))
        return cls(
            store,
            cache=cache,
            batcher=IngestionBatcher(store, cache, batch_size=settings.INGEST_BATCH_SIZE),
            default_page_size=settings.DEFAULT_PAGE_SIZE,
            max_page_size=settings.MAX_PAGE_SIZE,
        )

    def _cached(self, key: PageKey) -> Optional[PageResult]:
        # the cache never fails a request; any problem is a miss
        try:
            return self.cache.get(key)
        except Exception as e:
            app_logger.warning("cache.get.failed", page=key.page, page_size=key.page_size, error=str(e))
            return None

    def _remember(self, key: PageKey, result: PageResult, generation: int) -> None:
        try:
            if not self.cache.set(key, result, generation=generation):
                app_logger.debug("cache.set.skipped_stale", page=key.page, page_size=key.page_size)
        except Exception as e:
            app_logger.warning("cache.set.failed", page=key.page, page_size=key.page_size, error=str(e))

    def _invalidate(self, reason: str) -> None:
        try:
            dropped = self.cache.invalidate_all()
            app_logger.info("cache.invalidated", reason=reason, dropped=dropped)
        except Exception as e:
            app_logger.warning("cache.invalidate.failed", reason=reason, error=str(e))

    def read(self, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> PageResult:
        """Return one page of users, from the cache when possible."""
        page, size = paginate(page, page_size, self.max_page_size, self.default_page_size)
        key = PageKey(page, size)

        # captured before touching the store: a write landing meanwhile makes this page stale
        generation = self.cache.generation
        cached = self._cached(key)
        if cached is not None:
            app_logger.info("cache hit", page=page, page_size=size)
            return cached

        app_logger.info("cache miss - fetching from database", page=page, page_size=size)
        try:
            total, records = self.store.read_page(page_offset(page, size), size)
        except AppError as e:
            e.add_context(request="read", page=page, page_size=size)
            raise

        result = build_page(page, size, total, records)
        self._remember(key, result, generation)
        app_logger.info(f"cached page {page}", page_size=size, count=len(records))
        return result

    def write_one(self, record: UserCreate) -> UserOut:
        """Insert one user and invalidate every cached page."""
        try:
            created = self.store.insert_one(record)
        except AppError as e:
            e.add_context(request="write_one", email=record.email)
            raise

        self._invalidate("write_one")
        app_logger.info("created user", user_id=created.id, name=created.name)
        return created

    def write_bulk(self, records: Sequence[UserCreate], batch_size: Optional[int] = None) -> IngestionSummary:
        """Ingest `records` in batches. The batcher invalidates the cache itself."""
        try:
            return self.batcher.ingest(records, batch_size=batch_size)
        except AppError as e:
            e.add_context(request="write_bulk", total=len(records))
            raise

    def clear_cache(self) -> Dict[str, str]:
        self._invalidate("clear_cache")
        app_logger.info("cache cleared")
        return {"message": "Cache cleared successfully"}

    def count(self) -> int:
        try:
            return self.store.count()
        except AppError as e:
            e.add_context(request="count")
            raise

    def close(self) -> None:
        """Drop cached pages at shutdown."""
        self._invalidate("shutdown")
