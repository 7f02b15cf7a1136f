"""Services for probing, incident tracking, scheduling and persistence."""
from .prober import Prober, CheckResult, ServiceType
from .store import MonitoringStore
from .incidents import IncidentTracker, IncidentTransition
from .cycle_runner import MonitoringCycleRunner, CycleSummary
from .scheduler import SchedulerService

__all__ = [
    "Prober",
    "CheckResult",
    "ServiceType",
    "MonitoringStore",
    "IncidentTracker",
    "IncidentTransition",
    "MonitoringCycleRunner",
    "CycleSummary",
    "SchedulerService",
]
