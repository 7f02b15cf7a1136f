"""Database models."""
from .service import Service
from .monitoring_log import MonitoringLog
from .incident import Incident

__all__ = ["Service", "MonitoringLog", "Incident"]
