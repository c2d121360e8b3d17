"""Main FastAPI application."""
import asyncio
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from polygram.settings import settings
from polygram.api.notifications import router as notifications_router
from polygram.api.opinions import router as opinions_router
from polygram.api.pictures import router as pictures_router
from polygram.api.questions import router as questions_router
from polygram.api.topics import router as topics_router
from polygram.api.users import router as users_router
from polygram.api.utils import router as utils_router
from polygram.domain.common.errors import DomainError
from polygram.infra.db import base
# Import all models to ensure they're registered with Base
from polygram.infra.db.models import (  # noqa: F401
    UserModel,
    TopicModel,
    QuestionTopicModel,
    QuestionModel,
    OpinionModel,
    OpinionVoteModel,
    NotificationModel,
    PictureModel,
    DeviceModel,
)
from polygram.infra.db.repositories.notification_repo import NotificationRepository

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    try:
        async with base.engine.begin() as conn:
            await conn.run_sync(base.Base.metadata.create_all)
    except Exception as e:
        # Database might not be ready yet; requests will fail until it is
        logger.warning("Could not connect to database during startup: %s", e)

    try:
        async with base.AsyncSessionLocal() as session:
            repo = NotificationRepository(session, ttl_days=settings.notification_ttl_days)
            purged = await repo.purge_expired()
            await session.commit()
        if purged:
            logger.info("Purged %d expired notifications", purged)
    except Exception as e:
        logger.warning("Expired notification purge failed: %s", e)

    yield

    # Shutdown
    try:
        await base.engine.dispose()
    except asyncio.CancelledError:
        logger.info("Lifespan shutdown cancelled (e.g. Ctrl+C); cleanup attempted.")
        raise


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

# Credentials need explicit origins for the session cookie
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests and responses."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        logger.info(f"[REQUEST] {request.method} {request.url.path}")
        logger.debug(f"   Query params: {dict(request.query_params)}")
        if request.headers:
            # Never log the session cookie
            headers = dict(request.headers)
            if "cookie" in headers:
                headers["cookie"] = "***"
            logger.debug(f"   Headers: {headers}")

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"[RESPONSE] {request.method} {request.url.path} - {response.status_code} ({process_time:.3f}s)"
        )
        return response


# Add logging middleware AFTER CORS (CORS must be first)
app.add_middleware(LoggingMiddleware)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"status": status_code, "message": message}},
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Map domain exceptions to their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"[DOMAIN ERROR] {request.method} {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render the first request validation error as '<field>: <msg>'."""
    errors = exc.errors()
    logger.info(f"[VALIDATION ERROR] {request.method} {request.url.path}: {len(errors)} error(s)")
    if not errors:
        return _error_response(400, "Invalid request")
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc)
    message = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", "Invalid request")
    return _error_response(400, message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"[UNHANDLED] {request.method} {request.url.path}")
    return _error_response(500, "Something went wrong")


@app.get("/health")
@app.get(f"{settings.api_prefix}/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": settings.app_version}


app.include_router(users_router, prefix=settings.api_prefix)
app.include_router(questions_router, prefix=settings.api_prefix)
app.include_router(opinions_router, prefix=settings.api_prefix)
app.include_router(topics_router, prefix=settings.api_prefix)
app.include_router(notifications_router, prefix=settings.api_prefix)
app.include_router(pictures_router, prefix=settings.api_prefix)
app.include_router(utils_router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("polygram.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
