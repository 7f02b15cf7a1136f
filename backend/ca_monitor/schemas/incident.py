"""Incident schemas for API."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from .service import ServiceResponse


class IncidentResponse(BaseModel):
    """Incident record."""
    id: int
    service_id: int
    started_at: datetime
    resolved_at: Optional[datetime] = None
    severity: str
    description: Optional[str] = None
    is_resolved: bool

    class Config:
        from_attributes = True


class IncidentWithService(IncidentResponse):
    """Incident joined with the name of its service."""
    service_name: str
    service_short_name: str


class ServiceIncidents(BaseModel):
    """Incidents of one service, newest first."""
    service: ServiceResponse
    incidents: List[IncidentResponse]
