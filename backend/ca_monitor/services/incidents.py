"""Incident tracking - turns up/down results into open/resolved incidents."""
import logging
from enum import Enum
from typing import Optional

from .prober import CheckResult

logger = logging.getLogger(__name__)

INCIDENT_SEVERITY = "major"
DEFAULT_DOWN_DESCRIPTION = "Service is not responding"
RESOLVED_DESCRIPTION = "Service restored"


class IncidentTransition(str, Enum):
    OPENED = "opened"
    RESOLVED = "resolved"
    UNCHANGED = "unchanged"
    ERROR = "error"


class IncidentTracker:
    """Per-service state machine with states Healthy and Incident-Open.

    State is not kept in memory: the open incident row in the store is the
    state, so a restart resumes where the previous process left off.
    """

    def __init__(self, store):
        self.store = store

    async def process_result(self, result: CheckResult, service_name: Optional[str] = None) -> IncidentTransition:
        """Apply one check result to the service's incident state.

        Store errors are logged and reported as ``ERROR``; they never
        propagate to the caller.
        """
        label = service_name or f"service {result.service_id}"
        try:
            open_incident = await self.store.get_open_incident(result.service_id)

            if result.status == "down" and open_incident is None:
                description = result.error_message or DEFAULT_DOWN_DESCRIPTION
                incident_id = await self.store.create_incident(
                    result.service_id, INCIDENT_SEVERITY, description
                )
                logger.warning(f"INCIDENT CREATED #{incident_id}: {label} is DOWN - {description}")
                return IncidentTransition.OPENED

            if result.status == "up" and open_incident is not None:
                await self.store.resolve_incident(open_incident.id, RESOLVED_DESCRIPTION)
                logger.info(f"INCIDENT RESOLVED #{open_incident.id}: {label} is back UP")
                return IncidentTransition.RESOLVED

            return IncidentTransition.UNCHANGED
        except Exception as e:
            logger.error(f"Error updating incident state for {label}: {e}")
            return IncidentTransition.ERROR
