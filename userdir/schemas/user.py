from datetime import datetime, timezone
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class UserCreate(BaseModel):
    """Input for a new user; id and timestamp are always assigned server-side."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, max_length=255)
    age: int = Field(..., ge=0, le=150)
    email: str = Field(..., min_length=3, max_length=320)


class UserOut(BaseModel):
    """Detached copy of a stored user. Cache and service layers only ever hold these."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    name: str
    age: int
    email: str
    timestamp: Optional[datetime]

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands timestamps back without their zone; they were written as UTC
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class PageResult(BaseModel):
    """One page of users, ordered by id ascending. Immutable once built."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    page: int
    page_size: int
    total_records: int
    # ceil(total_records / page_size), 0 when there are no records
    total_pages: int
    records: Tuple[UserOut, ...]


class BulkCreateOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    count: int
    duration_seconds: float


class CountOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_records: int


class MessageOut(BaseModel):
    message: str


class CacheStatsOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    size: int
    max_entries: int
    hits: int
    misses: int
    generation: int
