"""Pydantic schemas for API request/response models."""
from .service import (
    ServiceCreate,
    ServiceUpdate,
    ServiceResponse,
    ServiceWithStatus,
    LatestStatus,
)
from .status import (
    LogEntry,
    UptimeStats,
    ServiceHistory,
    ServiceStats,
    StatsOverview,
)
from .incident import (
    IncidentResponse,
    IncidentWithService,
    ServiceIncidents,
)
from .monitoring import (
    CycleSummaryResponse,
    MonitoringStats,
    SchedulerStatus,
    ActionResponse,
)

__all__ = [
    "ServiceCreate",
    "ServiceUpdate",
    "ServiceResponse",
    "ServiceWithStatus",
    "LatestStatus",
    "LogEntry",
    "UptimeStats",
    "ServiceHistory",
    "ServiceStats",
    "StatsOverview",
    "IncidentResponse",
    "IncidentWithService",
    "ServiceIncidents",
    "CycleSummaryResponse",
    "MonitoringStats",
    "SchedulerStatus",
    "ActionResponse",
]
