"""API routes for the service registry.

Endpoints:
  GET    /api/services             — all services with live status
  POST   /api/services             — register a service
  GET    /api/services/{id}        — one service with detail
  DELETE /api/services/{id}        — remove a service
  POST   /api/services/{id}/check  — run its health check now
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from uptime_monitor.health.scheduler import CheckScheduler, now_ms
from uptime_monitor.health.status import service_detail, service_status
from uptime_monitor.services.models import (
    MATCH_ANY,
    InvalidServiceError,
    InvalidServiceTypeError,
    ServiceConfig,
)
from uptime_monitor.services.registry import (
    CapacityExceededError,
    ServiceNotFoundError,
    ServiceRegistry,
)

logger = logging.getLogger(__name__)

service_router = APIRouter(tags=["services"])

CAPACITY_MESSAGE = "Maximum services reached"


# ── Request models ───────────────────────────────────────────────────────

class CreateServiceBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    type: str = ""
    host: str
    # An explicit null falls back to the default, same as an absent field
    port: int | None = None
    path: str | None = None
    expected_response: str | None = Field(None, alias="expectedResponse")
    check_interval: int | None = Field(None, alias="checkInterval")

    def to_config(self) -> ServiceConfig:
        return ServiceConfig(
            name=self.name,
            type=self.type,
            host=self.host,
            port=80 if self.port is None else self.port,
            path="/" if self.path is None else self.path,
            expected_response=MATCH_ANY if self.expected_response is None else self.expected_response,
            check_interval=60 if self.check_interval is None else self.check_interval,
        )


# ── Helpers ──────────────────────────────────────────────────────────────

def _get_registry(request: Request) -> ServiceRegistry:
    return request.app.state.registry  # type: ignore[no-any-return]


def _get_scheduler(request: Request) -> CheckScheduler:
    return request.app.state.scheduler  # type: ignore[no-any-return]


def _validation_message(exc: ValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ())) or "body"
    return f"Invalid field '{field}': {err.get('msg', 'invalid value')}"


# ── Endpoints ────────────────────────────────────────────────────────────

@service_router.get("/services")
def list_services(request: Request) -> dict[str, Any]:
    """List all services in registry order with their current status."""
    now = now_ms()
    return {"services": [service_status(s, now) for s in _get_registry(request).list()]}


@service_router.post("/services")
async def create_service(request: Request) -> dict[str, Any]:
    """Register a new service. Capacity is checked before the body is parsed."""
    registry = _get_registry(request)
    if registry.is_full():
        raise HTTPException(status_code=400, detail=CAPACITY_MESSAGE)

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Invalid JSON")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON")

    try:
        body = CreateServiceBody.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=_validation_message(e))

    try:
        # create() takes the registry lock and writes the file
        service_id = await run_in_threadpool(registry.create, body.to_config())
    except CapacityExceededError:
        raise HTTPException(status_code=400, detail=CAPACITY_MESSAGE)
    except InvalidServiceTypeError:
        raise HTTPException(status_code=400, detail="Invalid service type")
    except InvalidServiceError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"success": True, "id": service_id}


@service_router.get("/services/{service_id}")
def get_service(service_id: str, request: Request) -> dict[str, Any]:
    """Get one service, including time since it was last up."""
    try:
        service = _get_registry(request).get(service_id)
    except ServiceNotFoundError:
        raise HTTPException(status_code=404, detail="Service not found")
    return {"service": service_detail(service, now_ms())}


@service_router.delete("/services/{service_id}")
def delete_service(service_id: str, request: Request) -> dict[str, Any]:
    """Remove a service."""
    try:
        _get_registry(request).delete(service_id)
    except ServiceNotFoundError:
        raise HTTPException(status_code=404, detail="Service not found")
    return {"success": True}


@service_router.post("/services/{service_id}/check")
def check_service(service_id: str, request: Request) -> dict[str, Any]:
    """Probe a service right away and return its refreshed detail."""
    scheduler = _get_scheduler(request)
    try:
        scheduler.check_now(service_id)
        service = scheduler.registry.get(service_id)
    except ServiceNotFoundError:
        raise HTTPException(status_code=404, detail="Service not found")
    return {"service": service_detail(service, now_ms())}
