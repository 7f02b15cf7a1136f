"""Monitoring cycle - checks every active service and records the outcome."""
import logging
import time
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import List, Optional

from .incidents import IncidentTracker
from .prober import CheckResult, Prober

logger = logging.getLogger(__name__)


@dataclass
class CycleSummary:
    """Aggregates of one completed cycle."""
    cycle: int
    started_at: datetime
    finished_at: datetime
    services_checked: int
    up_count: int
    down_count: int
    avg_response_time_ms: int

    @classmethod
    def from_results(cls, cycle: int, started_at: datetime, results: List[CheckResult]) -> "CycleSummary":
        up_count = sum(1 for r in results if r.status == "up")
        return cls(
            cycle=cycle,
            started_at=started_at,
            finished_at=datetime.utcnow(),
            services_checked=len(results),
            up_count=up_count,
            down_count=len(results) - up_count,
            avg_response_time_ms=average_response_time(results),
        )

    def to_dict(self) -> dict:
        return asdict(self)


def average_response_time(results: List[CheckResult]) -> int:
    if not results:
        return 0
    return round(sum(r.response_time_ms or 0 for r in results) / len(results))


class MonitoringCycleRunner:
    """Runs monitoring cycles; never more than one at a time."""

    def __init__(self, store, prober: Prober, incidents: Optional[IncidentTracker] = None):
        self.store = store
        self.prober = prober
        self.incidents = incidents or IncidentTracker(store)
        self.cycle_count = 0
        self.last_cycle: Optional[CycleSummary] = None
        self._in_progress = False
        self._created = time.monotonic()

    @property
    def is_running(self) -> bool:
        return self._in_progress

    async def run_monitoring_cycle(self) -> Optional[CycleSummary]:
        """Run one cycle.

        Returns the cycle summary, or None when the cycle was skipped because
        another one is in progress, there was nothing to check, or it failed.
        """
        # No await between test and set, so the guard is atomic on the loop
        if self._in_progress:
            logger.warning("Monitoring cycle already in progress, skipping")
            return None

        self._in_progress = True
        self.cycle_count += 1
        cycle = self.cycle_count
        started_at = datetime.utcnow()

        try:
            logger.info(f"Starting monitoring cycle #{cycle}")

            services = await self.store.list_active_services()
            if not services:
                logger.warning("No active services to monitor")
                return None

            logger.info(f"Checking {len(services)} services...")
            results = await self.prober.check_multiple_services(services)

            names = {s.id: s.short_name for s in services}
            # Incident lookup then write, one result at a time
            for result in results:
                await self._process_result(result, names.get(result.service_id))

            summary = CycleSummary.from_results(cycle, started_at, results)
            self.last_cycle = summary
            logger.info(
                f"Monitoring cycle #{cycle} completed: "
                f"{summary.up_count} up, {summary.down_count} down, "
                f"avg response: {summary.avg_response_time_ms}ms"
            )
            return summary
        except Exception:
            logger.exception(f"Error during monitoring cycle #{cycle}")
            return None
        finally:
            self._in_progress = False

    async def _process_result(self, result: CheckResult, service_name: Optional[str] = None):
        """Persist one result and update incident state for its service."""
        try:
            await self.store.append_log_entry(result)
        except Exception as e:
            logger.error(f"Error saving check result for service {result.service_id}, dropping it: {e}")
            return

        await self.incidents.process_result(result, service_name)

        symbol = "+" if result.status == "up" else "-"
        logger.debug(
            f"{symbol} {service_name or result.service_id}: {result.status} "
            f"({result.response_time_ms}ms, HTTP {result.status_code or 'N/A'})"
        )

    def get_stats(self) -> dict:
        return {
            "total_cycles": self.cycle_count,
            "is_cycle_running": self._in_progress,
            "last_cycle": self.last_cycle.to_dict() if self.last_cycle else None,
            "uptime_seconds": int(time.monotonic() - self._created),
        }
