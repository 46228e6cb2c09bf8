import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import structlog
from prometheus_fastapi_instrumentator import Instrumentator

from locallens.api import content, itinerary, preferences
from locallens.api.deps import limiter
from locallens.core.directions import DirectionsClient
from locallens.core.session import SessionRegistry
from locallens.core.settings import Settings
from locallens.db.repository import SqlRepository
from locallens.db.session import db_manager
from locallens.middleware.logging import RequestLoggingMiddleware

APP_VERSION = "1.0.0"

settings = Settings()

_QUERY_KEY = re.compile(r'([?&]key=)[^&\s]+')
_GOOGLE_KEY = re.compile(r'(AIza[0-9A-Za-z\-_]{35})')


# Redaction processor to scrub API keys from any string values in the event dict
def redact_api_keys(logger, method_name, event_dict):

    def scrub(v):
        if isinstance(v, str):
            # Directions requests carry the key as a query param
            v = _QUERY_KEY.sub(r'\1REDACTED', v)
            v = _GOOGLE_KEY.sub('REDACTED', v)
            return v
        if isinstance(v, list):
            return [scrub(x) for x in v]
        if isinstance(v, dict):
            return {k: scrub(vv) for k, vv in v.items()}
        return v

    for k, v in list(event_dict.items()):
        event_dict[k] = scrub(v)
    return event_dict


structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_api_keys,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

handlers = [logging.StreamHandler()]
if settings.LOG_FILE:
    handlers.append(logging.FileHandler(settings.LOG_FILE))

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(message)s',  # structlog handles formatting
    handlers=handlers
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    try:
        await db_manager.initialize()
        await db_manager.init_db()
    except Exception:
        logger.exception("Failed to initialize database manager")
        raise

    app.state.registry = SessionRegistry(
        SqlRepository(db_manager),
        DirectionsClient(db_manager.settings),
        db_manager.settings,
    )

    yield

    logger.info("Shutting down application...")
    await app.state.registry.drain()
    try:
        await db_manager.close()
    except Exception as e:
        logger.error(f"Error during database cleanup: {e}")

app = FastAPI(
    title="LocalLens API",
    description="Local sightseeing itinerary planning service",
    version=APP_VERSION,
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Instrumentator().instrument(app).expose(app, endpoint="/metrics")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


@app.get("/")
def root():
    return {"status": "API active", "version": APP_VERSION}


@app.get("/health")
async def health_check_detailed():
    db_health = await db_manager.health_check()
    return {
        "status": "healthy" if db_health["status"] == "healthy" else "degraded",
        "version": APP_VERSION,
        "components": {
            "database": db_health,
            "directions": "configured" if db_manager.settings.GOOGLE_MAPS_API_KEY else "unconfigured",
            "api": "healthy"
        },
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

prefix = "/api/v1"

app.include_router(preferences.router, prefix=prefix)
app.include_router(content.router, prefix=prefix)
app.include_router(itinerary.router, prefix=prefix)
