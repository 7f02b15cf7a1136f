"""CA service registry and per-service history API endpoints."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_store
from ..models import Service
from ..schemas.incident import IncidentResponse, ServiceIncidents
from ..schemas.service import (
    ServiceCreate,
    ServiceUpdate,
    ServiceResponse,
    ServiceWithStatus,
    LatestStatus,
)
from ..schemas.status import LogEntry, ServiceHistory, UptimeStats
from ..services.store import MonitoringStore

router = APIRouter(prefix="/api/kca", tags=["services"])


async def _get_service_or_404(store: MonitoringStore, service_id: int) -> Service:
    service = await store.get_service(service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return service


async def _ensure_short_name_free(store: MonitoringStore, short_name: str, exclude_id: int | None = None):
    existing = await store.get_service_by_short_name(short_name)
    if existing is not None and existing.id != exclude_id:
        raise HTTPException(status_code=409, detail=f"Service '{short_name}' already exists")


@router.get("/all", response_model=List[ServiceWithStatus])
async def list_services(store: MonitoringStore = Depends(get_store)):
    """List all active services with their latest status."""
    rows = await store.get_services_with_latest_status()

    return [
        ServiceWithStatus(
            **ServiceResponse.model_validate(service).model_dump(),
            latest_status=LatestStatus.model_validate(latest) if latest else None,
        )
        for service, latest in rows
    ]


@router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(service: ServiceCreate, store: MonitoringStore = Depends(get_store)):
    """Register a new CA service."""
    await _ensure_short_name_free(store, service.short_name)

    data = service.model_dump()
    data["is_active"] = 1 if service.is_active else 0
    db_service = await store.create_service(data)

    return ServiceResponse.model_validate(db_service)


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: int, store: MonitoringStore = Depends(get_store)):
    """Get a specific service by ID."""
    return ServiceResponse.model_validate(await _get_service_or_404(store, service_id))


@router.put("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    update: ServiceUpdate,
    store: MonitoringStore = Depends(get_store),
):
    """Update a service."""
    await _get_service_or_404(store, service_id)

    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    if "short_name" in changes:
        await _ensure_short_name_free(store, changes["short_name"], exclude_id=service_id)
    if "is_active" in changes:
        changes["is_active"] = 1 if changes["is_active"] else 0

    service = await store.update_service(service_id, changes)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    return ServiceResponse.model_validate(service)


@router.delete("/{service_id}", status_code=204)
async def delete_service(service_id: int, store: MonitoringStore = Depends(get_store)):
    """Delete a service together with its history and incidents."""
    if not await store.delete_service(service_id):
        raise HTTPException(status_code=404, detail="Service not found")


@router.get("/{service_id}/history", response_model=ServiceHistory)
async def get_service_history(
    service_id: int,
    hours: int = Query(default=24, ge=1, le=8760),  # Max 1 year
    store: MonitoringStore = Depends(get_store),
):
    """Get check history and uptime stats for a service over the last N hours."""
    service = await _get_service_or_404(store, service_id)

    history = await store.get_history(service_id, hours)
    stats = await store.get_uptime_stats(service_id, hours)

    return ServiceHistory(
        service=ServiceResponse.model_validate(service),
        period_hours=hours,
        history=[LogEntry.model_validate(entry) for entry in history],
        stats=UptimeStats(**stats),
    )


@router.get("/{service_id}/incidents", response_model=ServiceIncidents)
async def get_service_incidents(
    service_id: int,
    limit: int = Query(default=50, ge=1, le=500),
    store: MonitoringStore = Depends(get_store),
):
    """Get incidents for a specific service, newest first."""
    service = await _get_service_or_404(store, service_id)
    incidents = await store.get_service_incidents(service_id, limit)

    return ServiceIncidents(
        service=ServiceResponse.model_validate(service),
        incidents=[IncidentResponse.model_validate(i) for i in incidents],
    )
