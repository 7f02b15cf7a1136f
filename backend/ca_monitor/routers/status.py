"""Aggregate statistics and incident API for the dashboard."""
from typing import List

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_store
from ..schemas.incident import IncidentWithService
from ..schemas.status import StatsOverview, ServiceStats
from ..services.store import MonitoringStore, uptime_percentage

router = APIRouter(prefix="/api", tags=["status"])


def _with_service(rows) -> List[IncidentWithService]:
    return [
        IncidentWithService(
            id=incident.id,
            service_id=incident.service_id,
            started_at=incident.started_at,
            resolved_at=incident.resolved_at,
            severity=incident.severity,
            description=incident.description,
            is_resolved=bool(incident.is_resolved),
            service_name=name,
            service_short_name=short_name,
        )
        for incident, name, short_name in rows
    ]


@router.get("/stats", response_model=StatsOverview)
async def get_stats(
    hours: int = Query(default=24, ge=1, le=8760),
    store: MonitoringStore = Depends(get_store),
):
    """Get uptime statistics for all active services."""
    rows = await store.get_all_services_stats(hours)

    total_checks = sum(r["total_checks"] for r in rows)
    successful_checks = sum(r["successful_checks"] for r in rows)

    return StatsOverview(
        period_hours=hours,
        total_services=len(rows),
        total_checks=total_checks,
        successful_checks=successful_checks,
        overall_uptime_percentage=uptime_percentage(successful_checks, total_checks),
        services=[ServiceStats(**r) for r in rows],
    )


@router.get("/incidents", response_model=List[IncidentWithService])
async def get_active_incidents(store: MonitoringStore = Depends(get_store)):
    """Get all unresolved incidents."""
    return _with_service(await store.get_active_incidents())


@router.get("/incidents/all", response_model=List[IncidentWithService])
async def get_all_incidents(
    limit: int = Query(default=100, ge=1, le=1000),
    store: MonitoringStore = Depends(get_store),
):
    """Get the most recent incidents, resolved or not."""
    return _with_service(await store.get_all_incidents(limit))
