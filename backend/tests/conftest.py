"""Shared test fixtures."""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta
from typing import List

import pytest
import pytest_asyncio
from sqlalchemy import select

from ca_monitor.database import build_engine, build_session_factory, init_db
from ca_monitor.models import Incident, MonitoringLog, Service
from ca_monitor.services.store import MonitoringStore


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def store(session_factory) -> MonitoringStore:
    return MonitoringStore(session_factory)


@pytest.fixture
def add_service(session_factory):
    """Insert a service row; keyword arguments override the defaults."""
    counter = itertools.count(1)

    async def _add(**overrides) -> Service:
        n = next(counter)
        data = {
            "name": f"Service {n}",
            "short_name": f"svc-{n}",
            "service_type": "CA",
            "endpoint_url": f"http://ca{n}.example.test/",
            "check_method": "GET",
            "expected_status": 200,
            "is_active": 1,
        }
        data.update(overrides)
        async with session_factory() as session:
            service = Service(**data)
            session.add(service)
            await session.commit()
            return service

    return _add


@pytest.fixture
def add_log_entry(session_factory):
    """Insert a monitoring log entry with an explicit age."""

    async def _add(service_id: int, status: str = "up", age: timedelta = timedelta(0), response_time: int = 100):
        async with session_factory() as session:
            entry = MonitoringLog(
                service_id=service_id,
                status=status,
                response_time=response_time,
                status_code=200 if status == "up" else 503,
                checked_at=datetime.utcnow() - age,
            )
            session.add(entry)
            await session.commit()
            return entry

    return _add


@pytest.fixture
def fetch_all(session_factory):
    """Return every row of a model matching the filters, ordered by id."""

    async def _fetch(model, **filters) -> list:
        async with session_factory() as session:
            query = select(model).filter_by(**filters).order_by(model.id)
            return list((await session.execute(query)).scalars().all())

    return _fetch


@pytest.fixture
def open_incidents(fetch_all):
    async def _open(service_id: int) -> List[Incident]:
        return await fetch_all(Incident, service_id=service_id, is_resolved=0)

    return _open
