"""
RNG Service - cryptographically secure random numbers over HTTP.

Features:
- Uniform floats in [0, 1) recorded per user in SQLite
- Per-user and aggregate averages, paged history
- Shared-secret API key on every data route
- Structured logging with correlation IDs
- Prometheus metrics
- Health checks (liveness and readiness)
"""
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from . import __version__
from .api.router import router
from .config import ServiceConfig, Settings, get_settings, load_service_config
from .errors import ApiError, ConfigurationResetError
from .health import HealthChecker
from .logging import SERVICE_NAME, get_logger, setup_logging
from .metrics import Metrics
from .middleware import (
    CorrelationIdMiddleware,
    ErrorHandlerMiddleware,
    MetricsMiddleware,
    api_error_handler,
)
from .responses import IndentedJSONResponse
from .store.base import EventStore
from .store.sqlite import SQLiteEventStore

logger = get_logger()

CORS_MAX_AGE = 12 * 60 * 60


def create_app(
    service_config: ServiceConfig,
    store: EventStore,
    settings: Settings | None = None,
    metrics: Metrics | None = None,
) -> FastAPI:
    """
    Build the application around an already loaded configuration and store.

    Args:
        service_config: Listen address, API key and CORS allow-list
        store: Event store; its schema is created here
        settings: Environment settings (defaults to ``get_settings()``)
        metrics: Metrics registry (a fresh one by default)
    """
    settings = settings or get_settings()
    metrics = metrics or Metrics(service_name=SERVICE_NAME, version=__version__)
    health_checker = HealthChecker(store, service_name=SERVICE_NAME, version=__version__)

    store.initialize()

    app = FastAPI(
        title="RNG Service API",
        version=__version__,
        description="Cryptographically secure random numbers with per-user history",
        default_response_class=IndentedJSONResponse,
        license_info={"name": "MPL-2.0", "url": "https://www.mozilla.org/en-US/MPL/2.0/"},
    )
    app.state.service_config = service_config
    app.state.store = store
    app.state.metrics = metrics

    # Last added runs first: CORS, correlation ID, metrics, then error handling
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(MetricsMiddleware, metrics=metrics, api_prefix=settings.API_PREFIX)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=service_config.cors_origins(),
        allow_methods=["GET", "POST", "PUT", "PATCH"],
        allow_headers=["Origin", "Authorization"],
        expose_headers=["Content-Length"],
        allow_credentials=True,
        max_age=CORS_MAX_AGE,
    )

    app.add_exception_handler(ApiError, api_error_handler)
    app.include_router(router, prefix=settings.API_PREFIX)
    app.mount("/metrics", make_asgi_app(registry=metrics.registry))

    @app.get("/health")
    async def health():
        """Liveness probe."""
        logger.debug("health_check_liveness")
        return health_checker.liveness()

    @app.get("/health/ready")
    def health_ready():
        """
        Readiness probe.

        Returns:
            200: Service is ready to handle traffic
            503: Service is not ready
        """
        result = health_checker.readiness()
        status_code = 200 if result["status"] == "ready" else 503
        return IndentedJSONResponse(status_code=status_code, content=result)

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            "service_starting",
            version=__version__,
            env=settings.ENV,
            host=service_config.host,
            port=service_config.port,
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("service_stopping")
        metrics.app_up.labels(service=SERVICE_NAME, version=__version__).set(0)
        store.close()

    return app


def run():
    """Console entry point: load configuration, open the store and serve."""
    import uvicorn

    settings = get_settings()
    setup_logging(json_output=settings.LOG_JSON, service_name=SERVICE_NAME, level=settings.LOG_LEVEL)

    try:
        service_config = load_service_config(settings.CONFIG_PATH)
    except ConfigurationResetError as exc:
        logger.error("config.reset", path=settings.CONFIG_PATH, message=str(exc))
        sys.exit(1)

    app = create_app(service_config, SQLiteEventStore(settings.DATABASE_URL), settings=settings)
    uvicorn.run(app, host=service_config.host, port=service_config.port, log_config=None)


if __name__ == "__main__":
    run()
