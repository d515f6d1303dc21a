from typing import Optional

from fastapi import FastAPI
from contextlib import asynccontextmanager
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from userdir.api.users import router as users_router
from userdir.config.settings import Settings, settings as default_settings
from userdir.jobs.scheduler import add_cache_sweep_job, remove_cache_sweep_job, shutdown_scheduler, start_scheduler
from userdir.models.user import User  # noqa: F401  registers the table in SQLModel.metadata
from userdir.services import database
from userdir.services.directory_service import DirectoryService
from userdir.services.record_store import RecordStore
from userdir.utils.log import app_logger


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup logic
        db_engine = engine or database.engine
        if settings.DB_CREATE_TABLES:
            SQLModel.metadata.create_all(db_engine)

        store = RecordStore(database.build_session_factory(db_engine))
        directory = DirectoryService.from_settings(store, settings)
        app.state.settings = settings
        app.state.directory = directory

        sweeping = settings.CACHE_SWEEP_SECONDS > 0
        if sweeping:
            start_scheduler()
            add_cache_sweep_job(directory.cache, settings.CACHE_SWEEP_SECONDS)
        app_logger.info("app: started", database=db_engine.dialect.name)
        yield
        # Shutdown logic
        if sweeping:
            remove_cache_sweep_job()
            shutdown_scheduler()
        directory.close()
        if engine is None:
            db_engine.dispose()
        app_logger.info("app: stopped")

    app = FastAPI(title="userdir", lifespan=lifespan)

    # include routes
    app.include_router(users_router)
    return app


app = create_app()
