import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import health, sync, timetable
from app.core.config import Settings, get_settings
from app.core.exceptions import AppError
from app.core.logging_config import RequestIdMiddleware, setup_logging
from app.services.autosave import AutosaveTask
from app.services.persistence import StateRepository
from app.services.store import TimetableStore
from app.services.sync_hub import SyncHub
from app.services.sync_server import SyncServer

logger = logging.getLogger(__name__)


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(
        level=settings.log_level,
        to_file=settings.log_to_file,
        file_path=settings.log_file_path,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        repository = StateRepository(settings.state_file_path)
        server = SyncServer(TimetableStore(repository.load()), repository, SyncHub())
        app.state.sync_server = server
        autosave = AutosaveTask(server, settings.save_interval_seconds)
        autosave.start()
        try:
            yield
        finally:
            await autosave.stop()
            logger.info("Server shutting down. Saving final state...")
            server.persist(force=True)

    app = FastAPI(title=settings.project_name, lifespan=lifespan)
    app.state.settings = settings
    app.add_exception_handler(AppError, app_error_handler)

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
    app.include_router(timetable.router, prefix=f"{settings.api_prefix}/timetable", tags=["timetable"])
    app.include_router(sync.router, prefix=settings.api_prefix, tags=["sync"])
    return app


app = create_app()
