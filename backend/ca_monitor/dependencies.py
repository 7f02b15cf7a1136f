"""FastAPI dependencies resolving the app-owned monitoring components."""
from fastapi import Request

from .services.scheduler import SchedulerService
from .services.store import MonitoringStore


def get_store(request: Request) -> MonitoringStore:
    return request.app.state.store


def get_scheduler(request: Request) -> SchedulerService:
    return request.app.state.scheduler
