from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from userdir.config.settings import settings


def build_engine(url: Optional[str] = None, timeout: Optional[float] = None) -> Engine:
    """
    create the engine for the record store.
    every connection carries `timeout` so a stuck store surfaces as an error
    instead of blocking a worker forever.
    """
    url = url or settings.database_url
    timeout = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False, "timeout": timeout}}
        # in-memory databases live in a single connection shared by every session
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=False, **kwargs)

    # postgresql
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_timeout=timeout,
        connect_args={
            "connect_timeout": max(1, int(timeout)),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        },
        echo=False
    )


def build_session_factory(bind: Engine) -> sessionmaker:
    """session factory used by the record store; objects stay readable after commit."""
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


# default engine for the application and alembic
engine = build_engine()
