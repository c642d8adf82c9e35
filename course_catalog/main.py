import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

# Import all models to ensure Base.metadata is populated
from course_catalog.models import Course, CourseCategory, CourseCategoryMapping  # noqa: F401

from course_catalog.api.v1.router import api_router
from course_catalog.core.config import settings
from course_catalog.core.exceptions import CatalogError, NotFoundError, ValidationError
from course_catalog.core.logging import configure_logging
from course_catalog.db.init_db import init_database
from course_catalog.db.session import engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables before serving requests"""
    await init_database(engine)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    tags_metadata = [
        {"name": "categories", "description": "Course category hierarchy"},
        {"name": "course-category-mappings", "description": "Links between courses and categories"},
    ]

    app = FastAPI(
        title="Course Catalog Backend",
        version="1.0.0",
        description="Course category hierarchy service for the education platform",
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=tags_metadata,
        redirect_slashes=False,  # Collection routes answer on both forms without a 307
        lifespan=lifespan,
    )

    def error_response(status_code: int, exc: CatalogError) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    # CycleError is a ValidationError and shares its status code
    @app.exception_handler(ValidationError)
    async def catalog_validation_error_handler(request: Request, exc: ValidationError):
        return error_response(400, exc)

    @app.exception_handler(NotFoundError)
    async def not_found_error_handler(request: Request, exc: NotFoundError):
        return error_response(404, exc)

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        return error_response(400, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors with cleaner messages"""
        errors = []
        for error in exc.errors():
            field = ".".join(str(x) for x in error["loc"] if x != "body")
            msg = error["msg"]
            errors.append(f"{field}: {msg}")

        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request data", "code": "invalid-input", "errors": errors},
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Storage failure at %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error. Please contact support."},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error at %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error. Please contact support."},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "HEAD"],
        allow_headers=["*"],
        max_age=3600,  # Cache preflight requests for 1 hour
    )

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "message": "Course catalog is running"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("course_catalog.main:app", host="0.0.0.0", port=8000, reload=True)
