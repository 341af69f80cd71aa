"""
HTTP routes.

Handlers are thin: they read the components the app factory put on
`app.state`, call them, and wrap the result in the response envelope.
Validation failures surface as exceptions and are rendered by the handlers
registered in `perfmock.server.app`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from perfmock import __version__
from perfmock.generation.logs import decorate_log_entries, window_for
from perfmock.server.envelope import envelope, error_response, utc_now_iso
from perfmock.utils.logging import get_logger

log = get_logger(__name__)

router = APIRouter()


class _RequestBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResetRequest(_RequestBody):
    total_records: Optional[int] = Field(None, ge=0)
    seed: Optional[int] = None


class SeedRequest(_RequestBody):
    schema_: Optional[Dict[str, Any]] = Field(None, alias="schema")
    total_records: Optional[int] = Field(None, ge=0)
    seed: Optional[int] = None


def _page_limit(request: Request, limit: Optional[int]) -> int:
    """Requested page size, or the default; values above the cap are an error."""
    settings = request.app.state.settings
    if limit is None:
        return settings.default_page_size
    if limit > settings.max_page_size:
        raise RequestValidationError(
            [
                {
                    "type": "less_than_equal",
                    "loc": ("query", "limit"),
                    "msg": f"Input should be less than or equal to {settings.max_page_size}",
                    "input": limit,
                }
            ]
        )
    return limit


def _pagination(offset: int, limit: int, batch: Dict[str, Any]) -> Dict[str, Any]:
    pagination: Dict[str, Any] = {
        "offset": str(offset),
        "limit": limit,
        "hasMore": batch["has_more"],
        "totalCount": batch["total_count"],
    }
    if "next_offset" in batch:
        pagination["nextOffset"] = str(batch["next_offset"])
    return pagination


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@router.get("/")
async def root(request: Request) -> Dict[str, Any]:
    settings = request.app.state.settings
    return envelope(
        request,
        data={
            "name": "perfmock",
            "version": __version__,
            "description": "Mock API server with deterministic paginated data",
            "environment": settings.app_env,
            "endpoints": {
                "health": "/api/health",
                "records": "/api/records",
                "logs": "/api/v1/logs",
                "reset": "/api/reset",
                "seed": "/api/seed",
                "schema": "/api/schema",
                "config": "/api/config",
                "metrics": "/api/metrics",
            },
        },
    )


@router.get("/api/records")
async def get_records(
    request: Request,
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1),
) -> Dict[str, Any]:
    generator = request.app.state.generator
    page_limit = _page_limit(request, limit)
    batch = generator.generate_batch(offset, page_limit)
    log.debug(
        "Records retrieved",
        extra={"offset": offset, "limit": page_limit, "count": len(batch["records"])},
    )
    return envelope(
        request, data=batch["records"], pagination=_pagination(offset, page_limit, batch)
    )


@router.get("/api/v1/logs")
async def get_logs(
    request: Request,
    since: Optional[datetime] = Query(None),
    until: Optional[datetime] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
) -> Dict[str, Any]:
    generator = request.app.state.generator
    offset, effective_limit = window_for(since, until, _page_limit(request, limit))
    batch = generator.generate_batch(offset, effective_limit)
    entries = decorate_log_entries(batch["records"], offset, generator.get_state().seed)
    return envelope(request, data=entries, pagination=_pagination(offset, effective_limit, batch))


@router.post("/api/reset")
async def reset_data(
    request: Request, payload: Optional[ResetRequest] = Body(None)
) -> Dict[str, Any]:
    payload = payload or ResetRequest()
    state = request.app.state.generator.reset(
        total_records=payload.total_records, seed=payload.seed
    )
    return envelope(
        request,
        data={
            "message": "Data generator reset successfully",
            "totalRecords": state.total_records,
            "seed": state.seed,
        },
    )


@router.post("/api/seed")
async def seed_data(
    request: Request, payload: Optional[SeedRequest] = Body(None)
) -> Dict[str, Any]:
    payload = payload or SeedRequest()
    state = request.app.state.generator.reset(
        total_records=payload.total_records, schema=payload.schema_, seed=payload.seed
    )
    wire = state.to_wire()
    return envelope(
        request,
        data={
            "message": "Data generator seeded successfully",
            "schema": wire["schema"],
            "totalRecords": wire["totalRecords"],
            "seed": wire["seed"],
        },
    )


@router.get("/api/schema")
async def get_schema(request: Request) -> Dict[str, Any]:
    return envelope(request, data=request.app.state.generator.get_state().to_wire()["schema"])


@router.get("/api/generator/metrics")
async def get_generator_metrics(request: Request) -> Dict[str, Any]:
    return envelope(request, data=request.app.state.generator.get_metrics())


# ---------------------------------------------------------------------------
# Configuration and middleware
# ---------------------------------------------------------------------------


def _public_config(request: Request) -> Dict[str, Any]:
    """Current middleware snapshot in wire form, without the API key."""
    snapshot = request.app.state.config_store.current()
    return snapshot.model_dump(by_alias=True, exclude={"auth": {"api_key"}})


@router.get("/api/config")
async def get_config(request: Request) -> Dict[str, Any]:
    app_state = request.app.state
    settings = app_state.settings
    snapshot = app_state.config_store.current()
    generator_metrics = app_state.generator.get_metrics()
    return envelope(
        request,
        data={
            "server": {
                "host": settings.host,
                "port": settings.port,
                "environment": settings.app_env,
            },
            "middleware": {
                **_public_config(request),
                "latencyStats": app_state.latency_sampler.describe(snapshot.latency),
                "errorStats": app_state.error_selector.get_stats(snapshot.errors),
            },
            "generation": {
                "totalRecords": generator_metrics["totalRecords"],
                "seed": generator_metrics["seed"],
                "schemaFields": generator_metrics["schemaFields"],
                "defaultPageSize": settings.default_page_size,
                "maxPageSize": settings.max_page_size,
            },
        },
    )


@router.post("/api/config/middleware")
async def update_middleware_config(
    request: Request, changes: Dict[str, Any] = Body(...)
) -> Any:
    try:
        request.app.state.config_store.update(changes)
    except ValueError as exc:
        return error_response(request, 400, error="Configuration update failed", message=str(exc))
    return envelope(
        request,
        data={
            "message": "Middleware configuration updated successfully",
            "config": _public_config(request),
        },
    )


@router.get("/api/middleware/latency/stats")
async def get_latency_stats(request: Request) -> Dict[str, Any]:
    app_state = request.app.state
    return envelope(
        request, data=app_state.latency_sampler.describe(app_state.config_store.current().latency)
    )


@router.get("/api/middleware/errors/stats")
async def get_error_stats(request: Request) -> Dict[str, Any]:
    app_state = request.app.state
    return envelope(
        request, data=app_state.error_selector.get_stats(app_state.config_store.current().errors)
    )


@router.post("/api/middleware/errors/reset")
async def reset_error_stats(request: Request) -> Dict[str, Any]:
    request.app.state.error_selector.reset_stats()
    return envelope(request, data={"message": "Error statistics reset successfully"})


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/api/health")
async def health(request: Request) -> Dict[str, Any]:
    return envelope(request, data=request.app.state.health.health())


@router.get("/api/health/detailed")
async def detailed_health(request: Request) -> JSONResponse:
    payload, ok = request.app.state.health.detailed()
    return JSONResponse(status_code=200 if ok else 503, content=envelope(request, data=payload))


@router.get("/api/ready")
async def readiness() -> Dict[str, Any]:
    return {"status": "ready", "timestamp": utc_now_iso()}


@router.get("/api/live")
async def liveness() -> Dict[str, Any]:
    return {"status": "alive", "timestamp": utc_now_iso()}


@router.get("/api/metrics")
async def metrics(request: Request) -> Dict[str, Any]:
    return envelope(request, data=request.app.state.health.performance_metrics())


__all__ = ["ResetRequest", "SeedRequest", "router"]
