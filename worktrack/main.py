# worktrack/main.py
"""Application factory.

    uvicorn worktrack.main:create_app --factory
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from worktrack.auth.passwords import PasswordHasher
from worktrack.config import Settings
from worktrack.database import create_tables, make_engine, make_session_factory
from worktrack.errors import WorkTrackError
from worktrack.seed import seed_demo_users
from worktrack.store.base import DocumentStore, StoreError
from worktrack.store.memory_store import MemoryDocumentStore
from worktrack.store.sql_store import SqlDocumentStore

logger = logging.getLogger("worktrack.api")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


def create_app(settings: Settings | None = None, store: DocumentStore | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    # signing key and backend are checked before anything is served
    settings.require_valid()

    app = FastAPI(title="worktrack")
    app.state.settings = settings
    app.state.passwords = PasswordHasher(settings.password_hash_rounds)

    # ---------------- STORE ----------------
    if store is None and settings.store_backend == "memory":
        store = MemoryDocumentStore()

    if store is not None:
        app.state.memory_store = store
        app.state.session_factory = None
        if settings.seed_demo_users:
            seed_demo_users(store, app.state.passwords)
    else:
        engine = make_engine(settings.database_url, echo=settings.sql_echo)
        create_tables(engine)
        app.state.memory_store = None
        app.state.session_factory = make_session_factory(engine)
        if settings.seed_demo_users:
            db = app.state.session_factory()
            try:
                seed_demo_users(SqlDocumentStore(db), app.state.passwords)
            finally:
                db.close()

    logger.info("app_configured", extra={"store_backend": "memory" if store is not None else "sql"})

    # ---------------- CORS ----------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------- ERRORS ----------------
    @app.exception_handler(WorkTrackError)
    async def handle_worktrack_error(request: Request, exc: WorkTrackError):
        if exc.status_code >= 500:
            logger.error("request_failed", extra={"path": request.url.path, "error_kind": exc.kind})
        else:
            logger.info("request_rejected", extra={"path": request.url.path, "error_kind": exc.kind})

        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        # same body shape as ValidationError raised by the services
        fields, problems = [], []
        for error in exc.errors():
            loc = [str(part) for part in error.get("loc", ())]
            field = ".".join(loc[1:]) or ".".join(loc)
            fields.append(field)
            problems.append(f"{field}: {error.get('msg', 'invalid')}")

        logger.info("request_rejected", extra={"path": request.url.path, "error_kind": "ValidationError"})
        return JSONResponse(
            status_code=422,
            content={"error": "ValidationError", "detail": "; ".join(problems), "fields": fields},
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        logger.error("store_failed", extra={"path": request.url.path, "error_kind": exc.__class__.__name__})
        return JSONResponse(
            status_code=503,
            content={"error": exc.__class__.__name__, "detail": "Storage is unavailable, try again"},
        )

    # ---------------- ROUTERS ----------------
    from worktrack.auth.auth_router import router as auth_router
    from worktrack.project.project_router import router as project_router
    from worktrack.story.story_router import router as story_router
    from worktrack.task.task_router import router as task_router
    from worktrack.user.user_router import router as user_router

    app.include_router(auth_router, prefix="/auth")
    app.include_router(user_router)
    app.include_router(project_router)
    app.include_router(story_router)
    app.include_router(task_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
