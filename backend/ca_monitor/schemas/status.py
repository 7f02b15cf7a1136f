"""History and statistics schemas for the dashboard."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from .service import ServiceResponse


class LogEntry(BaseModel):
    """Individual persisted check result."""
    id: int
    service_id: int
    status: str  # up, down
    response_time: Optional[int] = None
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    checked_at: datetime

    class Config:
        from_attributes = True


class UptimeStats(BaseModel):
    """Aggregates over the requested window."""
    total_checks: int
    successful_checks: int
    avg_response_time: Optional[float] = None
    min_response_time: Optional[int] = None
    max_response_time: Optional[int] = None
    uptime_percentage: Optional[float] = None  # None when there were no checks


class ServiceHistory(BaseModel):
    """History of one service over a trailing window."""
    service: ServiceResponse
    period_hours: int
    history: List[LogEntry]
    stats: UptimeStats


class ServiceStats(BaseModel):
    """Per-service aggregate row."""
    id: int
    name: str
    short_name: str
    service_type: str
    total_checks: int
    successful_checks: int
    avg_response_time: Optional[float] = None
    uptime_percentage: Optional[float] = None


class StatsOverview(BaseModel):
    """Aggregate stats across all active services."""
    period_hours: int
    total_services: int
    total_checks: int
    successful_checks: int
    overall_uptime_percentage: Optional[float] = None
    services: List[ServiceStats]
