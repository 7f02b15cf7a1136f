"""Monitoring control schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class CycleSummaryResponse(BaseModel):
    """Aggregates of the last completed monitoring cycle."""
    cycle: int
    started_at: datetime
    finished_at: datetime
    services_checked: int
    up_count: int
    down_count: int
    avg_response_time_ms: int


class MonitoringStats(BaseModel):
    total_cycles: int
    is_cycle_running: bool
    last_cycle: Optional[CycleSummaryResponse] = None
    uptime_seconds: int


class SchedulerStatus(BaseModel):
    """Scheduler state as reported by the control API."""
    is_running: bool
    interval_minutes: int
    next_run_time: Optional[datetime] = None
    monitoring_stats: MonitoringStats


class ActionResponse(BaseModel):
    """Acknowledgement of a control action."""
    success: bool
    message: str
    note: Optional[str] = None
    status: Optional[SchedulerStatus] = None
