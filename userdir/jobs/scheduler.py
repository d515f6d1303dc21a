from apscheduler.schedulers.background import BackgroundScheduler
from userdir.services.pagination_cache import PaginationCache
from userdir.utils.log import app_logger

# in-memory jobstore: the sweep job is rebuilt at every start
_scheduler = BackgroundScheduler()

SWEEP_JOB_ID = "cache_sweep"


def start_scheduler():
    if not _scheduler.running:
        _scheduler.start()
        app_logger.info("scheduler: started")


def shutdown_scheduler():
    if _scheduler.running:
        _scheduler.shutdown(wait=True)
        app_logger.info("scheduler: shutdown")


def sweep_cache(cache: PaginationCache) -> int:
    """Drop expired pages. Runs on the scheduler thread, never on a request."""
    removed = cache.sweep()
    if removed:
        app_logger.debug("scheduler: cache sweep", removed=removed, remaining=len(cache))
    return removed


def add_cache_sweep_job(cache: PaginationCache, seconds: int):
    """
    sweep `cache` every `seconds`. a non-positive interval disables the job.
    if the job already exists it is replaced so it points at the current cache.
    """
    if seconds <= 0:
        app_logger.info("scheduler: cache sweep disabled")
        return

    # one sweep at a time; a late run is skipped rather than queued
    _scheduler.add_job(
        sweep_cache,
        'interval',
        seconds=seconds,
        args=[cache],
        id=SWEEP_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    app_logger.info(f"scheduler: added cache sweep job every {seconds}s")


def remove_cache_sweep_job():
    job = _scheduler.get_job(SWEEP_JOB_ID)
    if job:
        _scheduler.remove_job(SWEEP_JOB_ID)
        app_logger.info(f"scheduler: removed job {SWEEP_JOB_ID}")
