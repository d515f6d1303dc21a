from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from userdir.core.exceptions.exceptions import StoreUnavailable, StoreWriteError
from userdir.middleware.security import Security
from userdir.schemas.user import (
    BulkCreateOut,
    CacheStatsOut,
    CountOut,
    MessageOut,
    PageResult,
    UserCreate,
    UserOut,
)
from userdir.services.directory_service import DirectoryService
from userdir.utils.generator import UserGenerator
from userdir.utils.log import app_logger

router = APIRouter(prefix="/api", tags=["Users"])


def get_directory(request: Request) -> DirectoryService:
    """directory service built at startup by the app lifespan."""
    return request.app.state.directory


def _unavailable(e: StoreUnavailable) -> HTTPException:
    app_logger.error("api.store.unavailable", error=e.message, context=e.context)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"message": "user store unavailable, try again later", "context": e.context},
    )


def _rejected(e: StoreWriteError) -> HTTPException:
    app_logger.error("api.write.rejected", error=e.message, context=e.context)
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"message": "write rejected", "context": e.context},
    )


@router.get("/fetch-users", response_model=PageResult)
def fetch_users(
    page: int = 1,
    page_size: int = Query(100, alias="pageSize"),
    directory: DirectoryService = Depends(get_directory),
) -> PageResult:
    """Return one page of users ordered by id.

    Out-of-range paging is corrected, never rejected: page < 1 becomes 1,
    pageSize < 1 becomes 100 and pageSize > 1000 becomes 1000.
    """
    app_logger.info(f"fetching users... page: {page}, pageSize: {page_size}")
    try:
        return directory.read(page, page_size)
    except StoreUnavailable as e:
        raise _unavailable(e)


@router.post("/create-users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    directory: DirectoryService = Depends(get_directory),
) -> UserOut:
    """Create a single user; id and timestamp are assigned by the server."""
    sec = Security()
    if not sec.is_valid_email(payload.email):
        raise HTTPException(status_code=400, detail=f"invalid email: {payload.email}")

    try:
        return directory.write_one(payload)
    except StoreWriteError as e:
        raise _rejected(e)


@router.post("/create-bulk-users", response_model=BulkCreateOut)
def create_bulk_users(
    request: Request,
    count: Optional[int] = Query(None, ge=1),
    directory: DirectoryService = Depends(get_directory),
) -> BulkCreateOut:
    """Generate `count` random users (10,000 by default) and insert them in batches."""
    settings = request.app.state.settings
    total = count or settings.BULK_USER_COUNT
    if total > settings.MAX_BULK_USER_COUNT:
        raise HTTPException(status_code=400, detail=f"count must be at most {settings.MAX_BULK_USER_COUNT}")

    app_logger.info("starting bulk user creation...", count=total)
    users = UserGenerator().generate(total)
    try:
        summary = directory.write_bulk(users)
    except StoreWriteError as e:
        raise _rejected(e)

    app_logger.info(f"bulk user creation completed in {summary.elapsed_seconds:.2f} seconds")
    return BulkCreateOut(
        message=f"Successfully created {summary.inserted_count:,} users",
        count=summary.inserted_count,
        duration_seconds=summary.elapsed_seconds,
    )


@router.delete("/clear-cache", response_model=MessageOut)
def clear_cache(directory: DirectoryService = Depends(get_directory)) -> MessageOut:
    return MessageOut(**directory.clear_cache())


@router.get("/users/count", response_model=CountOut)
def user_count(directory: DirectoryService = Depends(get_directory)) -> CountOut:
    try:
        return CountOut(total_records=directory.count())
    except StoreUnavailable as e:
        raise _unavailable(e)


@router.get("/cache/stats", response_model=CacheStatsOut)
def cache_stats(directory: DirectoryService = Depends(get_directory)) -> CacheStatsOut:
    return CacheStatsOut(**directory.cache.stats())
