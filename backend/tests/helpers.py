"""Test doubles shared across test modules."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Dict, List, Optional

from ca_monitor.services.prober import CheckResult


def make_result(service_id: int, status: str = "up", error_message: Optional[str] = None,
                response_time_ms: int = 100) -> CheckResult:
    return CheckResult(
        service_id=service_id,
        status=status,
        response_time_ms=response_time_ms,
        status_code=200 if status == "up" else 503,
        error_message=error_message,
    )


def probe_target(service_id: int = 1, **overrides) -> SimpleNamespace:
    """Minimal service object as seen by the prober."""
    data = {
        "id": service_id,
        "short_name": f"svc-{service_id}",
        "service_type": "CA",
        "endpoint_url": f"http://ca{service_id}.example.test/",
        "check_method": "GET",
        "expected_status": 200,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


class FakeProber:
    """Prober stand-in returning scripted statuses per service id."""

    def __init__(self, statuses: Optional[Dict[int, str]] = None):
        self.statuses = statuses or {}
        self.calls = 0

    async def check_multiple_services(self, services) -> List[CheckResult]:
        self.calls += 1
        results = []
        for service in services:
            status = self.statuses.get(service.id, "up")
            results.append(make_result(
                service.id,
                status,
                error_message=None if status == "up" else "HTTP 503",
            ))
        return results


class BlockingProber(FakeProber):
    """Prober that holds the cycle open until released."""

    def __init__(self, statuses: Optional[Dict[int, str]] = None):
        super().__init__(statuses)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def check_multiple_services(self, services) -> List[CheckResult]:
        self.entered.set()
        await self.release.wait()
        return await super().check_multiple_services(services)
