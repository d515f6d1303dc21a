from typing import Optional
from datetime import datetime

from sqlmodel import Field, Column, DateTime, SQLModel


class User(SQLModel, table=True):
    __tablename__ = "users"

    # assigned by the store, monotonically increasing
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False)
    age: int = Field(nullable=False)
    email: str = Field(index=True, nullable=False)
    # UTC, set server-side when the row is written
    timestamp: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=False))
