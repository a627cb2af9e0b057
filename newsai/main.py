from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import logging

from .api.routes import router as api_router
from .core.config import settings
from .core.database import init_db
from .core.errors import NewsAIError
from .core.logging_config import setup_logging, shutdown_logging
from .models.schemas import HealthResponse
from .services.category_service import category_service
from .services.feed_parser import feed_parser
from .services.llm_service import llm_service
from .services.rss_service import rss_service
from .services.scheduler import Scheduler, build_default_jobs

logger = logging.getLogger(__name__)

scheduler: Optional[Scheduler] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic for the FastAPI app."""
    global scheduler
    setup_logging(settings, persist=settings.LOG_TO_DATABASE)
    logger.info("Starting up the application...")
    for warning in settings.warnings():
        logger.warning(warning)

    await init_db()
    await category_service.initialize_standard_categories()
    if settings.RSS_FEEDS:
        await rss_service.initialize_feed_sources(settings.RSS_FEEDS)
    if settings.CHECK_FEEDS_ON_STARTUP:
        logger.info("Performing initial feed check...")
        await rss_service.check_all_feeds()
    if settings.ENABLE_SCHEDULER:
        scheduler = Scheduler(build_default_jobs(settings), timezone=settings.SCHEDULER_TIMEZONE)
        scheduler.start()

    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()
            scheduler = None
        # Close aiohttp sessions to avoid unclosed client warnings.
        for service in (feed_parser, llm_service):
            try:
                await service.close()
            except Exception as e:
                logger.warning(f"Error closing HTTP session: {e}")
        logger.info("Shutting down the application...")
        shutdown_logging()


app = FastAPI(
    title="News AI Backend",
    description="RSS news aggregation with AI category normalization, analytics and reports",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(NewsAIError)
async def newsai_error_handler(request: Request, exc: NewsAIError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return _error(exc.status_code, str(exc))


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = [f"{'.'.join(str(p) for p in err['loc'][1:])}: {err['msg']}" for err in exc.errors()]
    return _error(400, "; ".join(messages) or "Invalid request")


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return _error(400, str(exc))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return _error(500, str(exc) if settings.is_development else "Internal server error")


@app.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(
        message="News AI Backend is running",
        timestamp=datetime.utcnow(),
        ai_available=llm_service.is_available,
    )


app.include_router(api_router, prefix="/api")
