import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blog_api.cache import cache
from blog_api.config import settings
from blog_api.exceptions import BlogApiError
from blog_api.logging_config import setup_logging
from blog_api.middleware import TimingMiddleware
from blog_api.routers import articles, auth, metrics, users
from blog_api.schemas import ErrorResponse, FieldError

VERSION = "1.0.0"

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await cache.connect()
    logger.info("Blog API started (env=%s)", settings.APP_ENV)
    yield
    await cache.disconnect()


app = FastAPI(
    title="Blog API",
    description="Users, articles and owner-or-admin authorization",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error mapping
def _error_body(message: str, error_type: str, errors: list[FieldError] | None = None) -> dict:
    return ErrorResponse(
        message=message,
        error_type=error_type,
        timestamp=datetime.now(timezone.utc),
        errors=errors,
    ).model_dump(mode="json", by_alias=True, exclude_none=True)


@app.exception_handler(BlogApiError)
async def blog_api_error_handler(request: Request, exc: BlogApiError):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, type(exc).__name__),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        FieldError(
            field=".".join(str(part) for part in err["loc"] if part != "body"),
            message=err["msg"],
        )
        for err in exc.errors()
    ]
    logger.warning("Validation failed for %s %s: %d error(s)", request.method, request.url.path, len(errors))
    return JSONResponse(status_code=400, content=_error_body("Validation failed", "ValidationError", errors))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=_error_body("An unexpected error occurred", type(exc).__name__),
    )


# Routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(articles.router)
app.include_router(metrics.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}
