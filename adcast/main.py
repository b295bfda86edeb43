import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging

from adcast.api.v1.router import router as api_v1_router
from adcast.core.cache import CacheService
from adcast.core.config import settings as app_settings
from adcast.core.database import AsyncSessionLocal
from adcast.core.exceptions import (
    AdcastError,
    AdvertisingRecordNotFoundError,
    AudioNotFoundError,
    GovernmentDataUnavailableError,
    InvalidStatusTransitionError,
    PipelineBusyError,
)
from adcast.core.rate_limit import limiter
from adcast.dependencies import build_pipeline_service, get_redis_client
from adcast.repositories.storage import storage_factory_for
from adcast.services.government_data_service import GovernmentDataService
from adcast.services.ingestion import start_ingestion_loop

# Configure logging
logging.basicConfig(level=getattr(logging, app_settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the pipeline and manage the ingestion background task."""
    redis = await get_redis_client()
    cache = CacheService(redis)
    app.state.pipeline_service = build_pipeline_service(AsyncSessionLocal, cache)

    ingestion_task = None
    if app_settings.INGESTION_ENABLED:
        ingestion_task = asyncio.create_task(
            start_ingestion_loop(
                storage_factory_for(AsyncSessionLocal),
                GovernmentDataService(),
                app.state.pipeline_service,
            )
        )
        logger.info("Background ingestion task scheduled")
    yield
    # Shutdown: cancel the background task
    if ingestion_task is not None:
        ingestion_task.cancel()
        try:
            await ingestion_task
        except asyncio.CancelledError:
            logger.info("Background ingestion task stopped")
    if redis is not None:
        await redis.aclose()


app = FastAPI(
    title="AdCast Ambient Advertising",
    description="Condition-triggered promotional audio for Singapore advertisers",
    version="0.1.0",
    lifespan=lifespan,
)

# Attach rate limiter state so slowapi middleware can find it
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in app_settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)

# Generated voiceovers are served from AUDIO_URL_PREFIX
app.mount(
    app_settings.AUDIO_URL_PREFIX,
    StaticFiles(directory=app_settings.AUDIO_OUTPUT_DIR, check_dir=False),
    name="audio-files",
)


@app.exception_handler(AdvertisingRecordNotFoundError)
async def advertising_not_found_handler(
    request: Request, exc: AdvertisingRecordNotFoundError
):
    logger.warning("Advertising record not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "advertising_not_found"},
    )


@app.exception_handler(AudioNotFoundError)
async def audio_not_found_handler(request: Request, exc: AudioNotFoundError):
    logger.warning("Audio record not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "audio_not_found"},
    )


@app.exception_handler(InvalidStatusTransitionError)
async def invalid_status_transition_handler(
    request: Request, exc: InvalidStatusTransitionError
):
    logger.warning("Invalid status transition: %s", exc.detail)
    return JSONResponse(
        status_code=400,
        content={"detail": exc.detail, "type": "invalid_status_transition"},
    )


@app.exception_handler(PipelineBusyError)
async def pipeline_busy_handler(request: Request, exc: PipelineBusyError):
    logger.warning("Pipeline busy: %s", exc.detail)
    return JSONResponse(
        status_code=409,
        content={"detail": exc.detail, "type": "pipeline_busy"},
    )


@app.exception_handler(GovernmentDataUnavailableError)
async def government_data_unavailable_handler(
    request: Request, exc: GovernmentDataUnavailableError
):
    logger.error("Government data unavailable: %s", exc.detail)
    return JSONResponse(
        status_code=503,
        content={"detail": exc.detail, "type": "government_data_unavailable"},
    )


@app.exception_handler(AdcastError)
async def adcast_error_handler(request: Request, exc: AdcastError):
    logger.error("Unhandled domain error: %s", exc.detail)
    return JSONResponse(
        status_code=500,
        content={"detail": exc.detail, "type": "adcast_error"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": exc.errors(),
            "type": "validation_error",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected/unhandled exceptions.

    Returns a generic 500 response so that raw stack traces are never
    leaked to the client.
    """
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected internal error occurred. Please try again later.",
            "type": "internal_server_error",
        },
    )
