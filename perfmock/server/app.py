"""
FastAPI application factory.

`create_app` wires the generator, middleware config store, latency sampler,
error selector and health monitor onto `app.state`. Every component can be
injected, which is how the tests pin randomness and keep state isolated.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from perfmock import __version__
from perfmock.config import (
    Settings,
    build_middleware_config,
    check_startup_config,
    default_schema,
    get_settings,
)
from perfmock.errors import ConfigurationError, SchemaValidationError
from perfmock.generation.engine import DataGenerator
from perfmock.injection.config_store import MiddlewareConfigStore
from perfmock.injection.errors import ErrorSelector
from perfmock.injection.latency import LatencySampler
from perfmock.server.envelope import error_response
from perfmock.server.health import HealthMonitor, RequestMetrics
from perfmock.server.middleware import RequestPipelineMiddleware
from perfmock.server.routes import router
from perfmock.utils.logging import get_logger

log = get_logger(__name__)


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(SchemaValidationError)
    async def schema_error_handler(request: Request, exc: SchemaValidationError) -> JSONResponse:
        log.info("Rejected invalid schema", extra={"issues": len(exc.issues)})
        return error_response(
            request,
            400,
            error="Invalid schema",
            message=str(exc),
            errors=[issue.model_dump() for issue in exc.issues],
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(
            request, 400, error="Invalid request", message=_format_validation_errors(exc)
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            log.warning(
                "Route not found",
                extra={"method": request.method, "path": request.url.path},
            )
            return error_response(
                request,
                404,
                error="Not Found",
                message=f"Route {request.method} {request.url.path} not found",
            )
        return error_response(request, exc.status_code, error=str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        log.exception(
            "Unhandled error",
            extra={"method": request.method, "path": request.url.path},
        )
        message = str(exc) if settings.is_development else "An internal server error occurred"
        return error_response(request, 500, error="Internal Server Error", message=message)


def create_app(
    settings: Optional[Settings] = None,
    generator: Optional[DataGenerator] = None,
    config_store: Optional[MiddlewareConfigStore] = None,
    latency_sampler: Optional[LatencySampler] = None,
    error_selector: Optional[ErrorSelector] = None,
) -> FastAPI:
    """
    Build the mock API application.

    Parameters
    ----------
    settings : Settings | None
        Defaults to the cached `get_settings()`.
    generator : DataGenerator | None
        Defaults to the built-in user schema with the configured total and seed.
    config_store : MiddlewareConfigStore | None
        Defaults to a store seeded from `settings`.
    latency_sampler, error_selector
        Randomness sources for fault injection.

    Raises
    ------
    ConfigurationError
        If the start-up configuration check reports errors.
    """
    settings = settings or get_settings()

    check = check_startup_config(settings)
    if not check.valid:
        log.error("Configuration validation failed", extra={"errors": check.errors})
        raise ConfigurationError(check.errors)
    for warning in check.warnings:
        log.warning(warning)

    app = FastAPI(
        title="perfmock",
        version=__version__,
        description="Mock API server with deterministic paginated data and fault injection.",
    )
    app.state.settings = settings
    app.state.generator = generator or DataGenerator(
        total_records=settings.default_total_records,
        schema=default_schema(),
        seed=settings.default_seed,
    )
    app.state.config_store = config_store or MiddlewareConfigStore(
        build_middleware_config(settings)
    )
    app.state.latency_sampler = latency_sampler or LatencySampler()
    app.state.error_selector = error_selector or ErrorSelector()
    app.state.request_metrics = RequestMetrics()
    app.state.health = HealthMonitor(app.state.request_metrics)

    app.add_middleware(RequestPipelineMiddleware)
    _register_exception_handlers(app, settings)
    app.include_router(router)

    snapshot = app.state.config_store.current()
    log.info(
        "Application initialised",
        extra={
            "environment": settings.app_env,
            "auth": snapshot.auth.enabled,
            "latency": snapshot.latency.enabled,
            "errors": snapshot.errors.enabled,
            "total_records": app.state.generator.get_metrics()["totalRecords"],
        },
    )
    return app


__all__ = ["create_app"]
