"""
Request pipeline middleware.

One pass per request, in order:

1. assign the request id and take the middleware config snapshot
2. inject latency (asyncio.sleep, never blocks the loop)
3. inject an error, short-circuiting the route
4. check the API key
5. run the route, then stamp timing headers, record metrics and log

Every step reads the same `MiddlewareConfig` snapshot, taken once on entry.
"""

from __future__ import annotations

import asyncio
import secrets
import time
from typing import Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from perfmock.domain.models import AuthConfig, ErrorInjectionConfig, ErrorType, is_probe_route
from perfmock.server.envelope import (
    REQUEST_ID_HEADER,
    error_label,
    error_response,
    new_request_id,
    utc_now_iso,
)
from perfmock.utils.logging import get_logger

log = get_logger(__name__)
access_log = get_logger("perfmock.access")

# Reachable without an API key.
PUBLIC_ROUTES = ("/",)


def _requires_auth(path: str) -> bool:
    return path not in PUBLIC_ROUTES and not is_probe_route(path)


class RequestPipelineMiddleware(BaseHTTPMiddleware):
    """Applies request context, fault injection and auth around every route."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        state = request.app.state
        started = time.perf_counter()
        request_timestamp = utc_now_iso()
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        request.state.request_id = request_id

        config = state.config_store.current()
        request.state.middleware_config = config
        path = request.url.path
        extra_headers: Dict[str, str] = {}

        if config.latency.enabled and config.latency.applies_to(path):
            delay_ms = state.latency_sampler.sample(config.latency)
            extra_headers["X-Injected-Latency-Ms"] = f"{delay_ms:.3f}"
            extra_headers["X-Latency-Distribution"] = config.latency.distribution
            await asyncio.sleep(delay_ms / 1000)

        response: Response | None = None
        if config.errors.applies_to(path):
            error_type = state.error_selector.select(config.errors)
            if error_type is not None:
                response = await self._injected_error(request, config.errors, error_type)

        if response is None and config.auth.enabled and _requires_auth(path):
            response = self._check_api_key(request, config.auth)

        if response is None:
            response = await call_next(request)

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Request-Timestamp"] = request_timestamp
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.3f}"
        for name, value in extra_headers.items():
            response.headers[name] = value

        state.request_metrics.record(duration_ms, response.status_code)
        access_log.info(
            "%s %s %s %.1fms",
            request.method,
            path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 3),
            },
        )
        return response

    async def _injected_error(
        self, request: Request, config: ErrorInjectionConfig, error_type: ErrorType
    ) -> Response:
        settings = request.app.state.settings
        log.warning(
            "Injecting %s error",
            error_type.type,
            extra={
                "request_id": request.state.request_id,
                "error_type": error_type.type,
                "status_code": error_type.status_code,
            },
        )
        if error_type.type == "timeout":
            await asyncio.sleep(settings.timeout_delay_ms / 1000)
        return error_response(
            request,
            error_type.status_code,
            error=error_label(error_type.type),
            message=error_type.message,
            headers={
                "X-Injected-Error-Type": error_type.type,
                "X-Error-Rate": str(config.error_rate),
            },
        )

    @staticmethod
    def _check_api_key(request: Request, auth: AuthConfig) -> Response | None:
        provided = request.headers.get(auth.header_name)
        if not provided:
            return error_response(
                request,
                401,
                error="Missing API key",
                message=f"API key required in {auth.header_name} header",
            )
        if not auth.api_key or not secrets.compare_digest(
            provided.encode(), auth.api_key.encode()
        ):
            return error_response(
                request,
                401,
                error="Invalid API key",
                message="The provided API key is not valid",
            )
        return None


__all__ = ["PUBLIC_ROUTES", "RequestPipelineMiddleware"]
