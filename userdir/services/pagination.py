import math
from typing import Sequence, Tuple

from userdir.schemas.user import PageResult, UserOut

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 1000


def paginate(
    requested_page: int,
    requested_size: int,
    max_size: int = MAX_PAGE_SIZE,
    default_size: int = DEFAULT_PAGE_SIZE,
) -> Tuple[int, int]:
    """Clamp paging input instead of rejecting it.

    - page < 1 becomes 1
    - size < 1 becomes `default_size`
    - size > `max_size` becomes `max_size`
    """
    page = requested_page if requested_page >= 1 else 1
    if requested_size < 1:
        size = default_size
    else:
        size = requested_size
    return page, min(size, max_size)


def page_offset(page: int, size: int) -> int:
    return (page - 1) * size


def total_pages(total: int, size: int) -> int:
    """ceil(total / size). An empty store has 0 pages, not 1."""
    if total <= 0:
        return 0
    return math.ceil(total / size)


def build_page(page: int, size: int, total: int, records: Sequence[UserOut]) -> PageResult:
    return PageResult(
        page=page,
        page_size=size,
        total_records=total,
        total_pages=total_pages(total, size),
        records=tuple(records),
    )
