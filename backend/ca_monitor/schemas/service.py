"""Service schemas for API."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

# OCSP, CRL, TSP, CA, other
SERVICE_TYPE_PATTERN = "^(OCSP|CRL|TSP|CA|other)$"


class ServiceCreate(BaseModel):
    """Schema for registering a new CA service."""
    name: str = Field(..., min_length=1, max_length=255)
    short_name: str = Field(..., min_length=1, max_length=100, pattern="^[A-Za-z0-9_.-]+$")
    description: Optional[str] = Field(None, max_length=500)
    service_type: str = Field(..., pattern=SERVICE_TYPE_PATTERN)
    endpoint_url: str = Field(..., min_length=1, pattern="^https?://")
    check_method: str = Field(default="GET", pattern="^(GET|HEAD|POST)$")
    expected_status: int = Field(default=200, ge=100, le=599)
    is_active: bool = True


class ServiceUpdate(BaseModel):
    """Schema for updating a service."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    short_name: Optional[str] = Field(None, min_length=1, max_length=100, pattern="^[A-Za-z0-9_.-]+$")
    description: Optional[str] = Field(None, max_length=500)
    service_type: Optional[str] = Field(None, pattern=SERVICE_TYPE_PATTERN)
    endpoint_url: Optional[str] = Field(None, min_length=1, pattern="^https?://")
    check_method: Optional[str] = Field(None, pattern="^(GET|HEAD|POST)$")
    expected_status: Optional[int] = Field(None, ge=100, le=599)
    is_active: Optional[bool] = None


class ServiceResponse(BaseModel):
    """Schema for a service in API responses."""
    id: int
    name: str
    short_name: str
    description: Optional[str] = None
    service_type: str
    endpoint_url: str
    check_method: str
    expected_status: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LatestStatus(BaseModel):
    """Latest check result for a service."""
    status: str  # up, down
    response_time: Optional[int] = None
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    checked_at: datetime

    class Config:
        from_attributes = True


class ServiceWithStatus(ServiceResponse):
    """Service with its latest check result."""
    latest_status: Optional[LatestStatus] = None
