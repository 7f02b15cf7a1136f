"""Tests for the FastAPI routes."""

from __future__ import annotations

import httpx
import pytest_asyncio

from ca_monitor.config import settings
from ca_monitor.main import create_app
from ca_monitor.services.cycle_runner import MonitoringCycleRunner
from ca_monitor.services.scheduler import SchedulerService
from ca_monitor.models.service import DEFAULT_SERVICES
from helpers import FakeProber, make_result


@pytest_asyncio.fixture
async def app(store):
    scheduler = SchedulerService(
        MonitoringCycleRunner(store, FakeProber()),
        interval_minutes=5,
        initial_delay_seconds=3600,
    )
    app = create_app(store=store, scheduler=scheduler)
    yield app
    scheduler.shutdown()


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


NEW_SERVICE = {
    "name": "Test CA (OCSP)",
    "short_name": "test-ocsp",
    "service_type": "OCSP",
    "endpoint_url": "http://ocsp.example.test/",
    "check_method": "POST",
}


class TestHealth:
    async def test_health(self, client) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"


class TestWiring:
    async def test_lifespan_and_writes_use_the_store_database(self, app, client, store, monkeypatch) -> None:
        monkeypatch.setattr(settings, "seed_sample_services", True)
        monkeypatch.setattr(settings, "scheduler_autostart", False)

        async with app.router.lifespan_context(app):
            resp = await client.post("/api/kca", json=NEW_SERVICE)
            assert resp.status_code == 201

            short_names = {s.short_name for s in await store.list_active_services()}

        assert len(short_names) == len(DEFAULT_SERVICES) + 1
        assert "test-ocsp" in short_names

    async def test_update_and_delete_reach_the_store(self, client, store, add_service) -> None:
        service = await add_service()

        await client.put(f"/api/kca/{service.id}", json={"name": "Renamed"})
        assert (await store.get_service(service.id)).name == "Renamed"

        await client.delete(f"/api/kca/{service.id}")
        assert await store.get_service(service.id) is None


class TestServiceRoutes:
    async def test_create_and_list(self, client) -> None:
        resp = await client.post("/api/kca", json=NEW_SERVICE)
        assert resp.status_code == 201
        created = resp.json()
        assert created["short_name"] == "test-ocsp"
        assert created["expected_status"] == 200
        assert created["is_active"] is True

        resp = await client.get("/api/kca/all")
        assert resp.status_code == 200
        services = resp.json()
        assert [s["short_name"] for s in services] == ["test-ocsp"]
        assert services[0]["latest_status"] is None

    async def test_duplicate_short_name(self, client) -> None:
        assert (await client.post("/api/kca", json=NEW_SERVICE)).status_code == 201
        resp = await client.post("/api/kca", json=NEW_SERVICE)
        assert resp.status_code == 409

    async def test_invalid_method_rejected(self, client) -> None:
        resp = await client.post("/api/kca", json={**NEW_SERVICE, "check_method": "DELETE"})
        assert resp.status_code == 422

    async def test_unknown_service_type_rejected(self, client) -> None:
        resp = await client.post("/api/kca", json={**NEW_SERVICE, "service_type": "ldap"})
        assert resp.status_code == 422

        resp = await client.post("/api/kca", json={**NEW_SERVICE, "service_type": "other"})
        assert resp.status_code == 201

    async def test_update_to_taken_short_name(self, client, add_service) -> None:
        first = await add_service()
        second = await add_service()

        resp = await client.put(f"/api/kca/{second.id}", json={"short_name": first.short_name})
        assert resp.status_code == 409

        resp = await client.put(f"/api/kca/{second.id}", json={"service_type": "LDAP"})
        assert resp.status_code == 422

    async def test_update_and_delete(self, client, add_service) -> None:
        service = await add_service()

        resp = await client.put(f"/api/kca/{service.id}", json={"expected_status": 400, "is_active": False})
        assert resp.status_code == 200
        assert resp.json()["expected_status"] == 400
        assert resp.json()["is_active"] is False

        assert (await client.get("/api/kca/all")).json() == []

        resp = await client.delete(f"/api/kca/{service.id}")
        assert resp.status_code == 204
        assert (await client.get(f"/api/kca/{service.id}")).status_code == 404

    async def test_missing_service(self, client) -> None:
        assert (await client.get("/api/kca/999")).status_code == 404
        assert (await client.get("/api/kca/999/history")).status_code == 404
        assert (await client.get("/api/kca/999/incidents")).status_code == 404
        assert (await client.put("/api/kca/999", json={"name": "x"})).status_code == 404
        assert (await client.delete("/api/kca/999")).status_code == 404

    async def test_history(self, client, store, add_service) -> None:
        service = await add_service()
        for status in ["up"] * 8 + ["down"] * 2:
            await store.append_log_entry(make_result(service.id, status))

        resp = await client.get(f"/api/kca/{service.id}/history", params={"hours": 12})

        assert resp.status_code == 200
        data = resp.json()
        assert data["service"]["id"] == service.id
        assert data["period_hours"] == 12
        assert len(data["history"]) == 10
        assert data["stats"]["uptime_percentage"] == 80.0

    async def test_latest_status_in_listing(self, client, store, add_service) -> None:
        service = await add_service()
        await store.append_log_entry(make_result(service.id, "down", "CA service unavailable"))

        [listed] = (await client.get("/api/kca/all")).json()

        assert listed["latest_status"]["status"] == "down"
        assert listed["latest_status"]["error_message"] == "CA service unavailable"

    async def test_service_incidents(self, client, store, add_service) -> None:
        service = await add_service()
        await store.create_incident(service.id, "major", "Service is not responding")

        resp = await client.get(f"/api/kca/{service.id}/incidents")

        assert resp.status_code == 200
        [incident] = resp.json()["incidents"]
        assert incident["is_resolved"] is False
        assert incident["severity"] == "major"


class TestStatusRoutes:
    async def test_stats(self, client, store, add_service) -> None:
        first = await add_service()
        second = await add_service()
        for status in ("up", "up", "up", "down"):
            await store.append_log_entry(make_result(first.id, status))
        await store.append_log_entry(make_result(second.id, "up"))

        resp = await client.get("/api/stats")

        assert resp.status_code == 200
        data = resp.json()
        assert data["period_hours"] == 24
        assert data["total_services"] == 2
        assert data["total_checks"] == 5
        assert data["overall_uptime_percentage"] == 80.0
        assert [s["uptime_percentage"] for s in data["services"]] == [75.0, 100.0]

    async def test_incidents(self, client, store, add_service) -> None:
        service = await add_service(name="Root CA", short_name="root-ca")
        resolved = await store.create_incident(service.id, "major", "outage")
        await store.resolve_incident(resolved, "Service restored")
        active = await store.create_incident(service.id, "major", "again")

        resp = await client.get("/api/incidents")
        assert resp.status_code == 200
        [incident] = resp.json()
        assert incident["id"] == active
        assert incident["service_name"] == "Root CA"
        assert incident["service_short_name"] == "root-ca"

        resp = await client.get("/api/incidents/all")
        assert {i["id"] for i in resp.json()} == {resolved, active}


class TestMonitoringRoutes:
    async def test_status(self, client) -> None:
        resp = await client.get("/api/monitoring/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["is_running"] is False
        assert data["interval_minutes"] == 5
        assert data["monitoring_stats"]["total_cycles"] == 0
        assert data["monitoring_stats"]["is_cycle_running"] is False

    async def test_trigger(self, client, add_service) -> None:
        await add_service()

        resp = await client.post("/api/monitoring/trigger")
        assert resp.status_code == 200
        assert resp.json()["success"] is True

        # Background task has completed by the time the ASGI call returns
        data = (await client.get("/api/monitoring/status")).json()
        assert data["monitoring_stats"]["total_cycles"] == 1
        assert data["monitoring_stats"]["last_cycle"]["up_count"] == 1

    async def test_start_and_stop(self, client) -> None:
        resp = await client.post("/api/monitoring/start")
        assert resp.status_code == 200
        assert resp.json()["status"]["is_running"] is True
        assert resp.json()["status"]["next_run_time"] is not None

        resp = await client.post("/api/monitoring/stop")
        assert resp.status_code == 200
        assert resp.json()["status"]["is_running"] is False

        # Stopping again is a harmless no-op
        resp = await client.post("/api/monitoring/stop")
        assert resp.status_code == 200
        assert resp.json()["status"]["is_running"] is False
