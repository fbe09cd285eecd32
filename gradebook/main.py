import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from gradebook.api.v1.admin.router import router as admin_router
from gradebook.api.v1.auth.router import router as auth_router
from gradebook.api.v1.classes.router import router as classes_router
from gradebook.api.v1.export.router import router as export_router
from gradebook.api.v1.grades.router import router as grades_router
from gradebook.api.v1.students.router import router as students_router
from gradebook.api.v1.subjects.router import router as subjects_router
from gradebook.api.v1.tasks.router import router as tasks_router
from gradebook.core.config import settings
from gradebook.core.exceptions import GENERIC_SERVER_ERROR
from gradebook.core.logging_config import configure_logging
from gradebook.db.seed_defaults import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.uses_fallback_secret:
        logger.warning("JWT_SECRET_KEY is not set; using the built-in fallback secret")
    if settings.auto_create_schema:
        await init_db()
        logger.info("Database schema ready")
    yield


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Unhandled database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": GENERIC_SERVER_ERROR},
    )


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

    # CORS: allow the frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)

    # Routers
    app.include_router(auth_router)
    app.include_router(classes_router)
    app.include_router(students_router)
    app.include_router(subjects_router)
    app.include_router(tasks_router)
    app.include_router(grades_router)
    app.include_router(export_router)
    app.include_router(admin_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
