import logging
import logging.config

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from app.api.metrics import router as metrics_router
from app.api.routes import router as api_router
from app.config import get_settings
from app.core.errors import ServiceError
from app.monitoring import metrics
from app.services.rate_limit import get_rate_limit_store, hit


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        }
    },
    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        }
    },
    "root": {
        "handlers": ["default"],
        "level": "INFO",
    },
    "loggers": {
        "sqlalchemy.engine": {
            "handlers": ["default"],
            "level": "WARNING",
            "propagate": False,
        }
    },
}


logging.config.dictConfig(LOGGING_CONFIG)
logger = logging.getLogger(__name__)

settings = get_settings()

RATE_LIMIT_EXEMPT_PATHS = frozenset({"/health", "/metrics"})

app = FastAPI(title=settings.app_name, debug=settings.debug)
metrics.mark_initial_state()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",", 1)[0].strip()
        if first:
            return first
    cf_ip = request.headers.get("cf-connecting-ip")
    if cf_ip:
        return cf_ip.strip()
    return request.client.host if request.client else "unknown"


def _within_rate_limit(ip: str) -> bool:
    return hit(
        get_rate_limit_store(),
        ip,
        limit=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    if (
        not settings.rate_limit_enabled
        or request.method == "OPTIONS"
        or request.url.path in RATE_LIMIT_EXEMPT_PATHS
    ):
        return await call_next(request)

    try:
        allowed = await run_in_threadpool(_within_rate_limit, client_ip(request))
    except RedisError:
        logger.warning("Rate limit store unavailable, letting request through", exc_info=True)
        return await call_next(request)
    if not allowed:
        metrics.rate_limited_total.inc()
        return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded"})
    return await call_next(request)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    response = await call_next(request)
    metrics.http_requests_total.inc(method=request.method)
    if response.status_code >= 500:
        metrics.http_errors_total.inc()
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin).rstrip("/") for origin in settings.cors_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_origin_regex=settings.cors_allow_origin_regex,
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health", tags=["system"])
def health_check() -> dict[str, str]:
    """Simple health check endpoint."""
    return {"status": "ok", "environment": settings.environment}


app.include_router(api_router, prefix="/api")
app.include_router(metrics_router)
