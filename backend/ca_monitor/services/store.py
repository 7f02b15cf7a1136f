"""Persistence store - service registry, monitoring log and incident table.

The monitoring core only talks to the database through this class, so a
store bound to a different session factory (e.g. a temporary SQLite file in
tests) can be injected without touching the core.
"""
import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import select, delete, func, case
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..database import async_session
from ..models import Service, MonitoringLog, Incident
from ..utils.db_utils import retry_on_lock
from .prober import CheckResult

logger = logging.getLogger(__name__)


def uptime_percentage(successful: int, total: int) -> Optional[float]:
    """Successful share of checks in percent, rounded to 2 decimals."""
    if not total:
        return None
    return round(successful / total * 100, 2)


class MonitoringStore:
    """Async SQLAlchemy implementation of the persistence store."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session):
        self.session_factory = session_factory

    @property
    def bind(self) -> AsyncEngine:
        """Engine the store's sessions are bound to."""
        return self.session_factory.kw["bind"]

    # Core-facing operations

    async def list_active_services(self) -> List[Service]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Service).where(Service.is_active == 1).order_by(Service.name)
            )
            return list(result.scalars().all())

    async def append_log_entry(self, check_result: CheckResult) -> int:
        """Persist a check result; checked_at is stamped now."""
        async with self.session_factory() as session:
            entry = MonitoringLog(
                service_id=check_result.service_id,
                status=check_result.status,
                response_time=check_result.response_time_ms,
                status_code=check_result.status_code,
                error_message=check_result.error_message,
                checked_at=datetime.utcnow(),
            )
            session.add(entry)
            await retry_on_lock(session.commit)
            return entry.id

    async def get_open_incident(self, service_id: int) -> Optional[Incident]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Incident)
                .where(Incident.service_id == service_id, Incident.is_resolved == 0)
                .order_by(Incident.started_at.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def create_incident(self, service_id: int, severity: str, description: Optional[str]) -> int:
        async with self.session_factory() as session:
            incident = Incident(
                service_id=service_id,
                started_at=datetime.utcnow(),
                severity=severity,
                description=description,
                is_resolved=0,
            )
            session.add(incident)
            await retry_on_lock(session.commit)
            return incident.id

    async def resolve_incident(self, incident_id: int, description: Optional[str] = None) -> Optional[Incident]:
        """Mark an incident resolved; description replaces the old one when given."""
        async with self.session_factory() as session:
            incident = await session.get(Incident, incident_id)
            if incident is None:
                logger.warning(f"Incident {incident_id} not found, nothing to resolve")
                return None
            incident.resolved_at = datetime.utcnow()
            incident.is_resolved = 1
            if description is not None:
                incident.description = description
            await retry_on_lock(session.commit)
            return incident

    # Query operations for the API

    async def get_service(self, service_id: int) -> Optional[Service]:
        async with self.session_factory() as session:
            return await session.get(Service, service_id)

    async def get_services_with_latest_status(self) -> List[tuple]:
        """Active services paired with their most recent log entry (or None)."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Service).where(Service.is_active == 1).order_by(Service.name)
            )
            services = result.scalars().all()

            rows = []
            for service in services:
                latest_result = await session.execute(
                    select(MonitoringLog)
                    .where(MonitoringLog.service_id == service.id)
                    .order_by(MonitoringLog.checked_at.desc(), MonitoringLog.id.desc())
                    .limit(1)
                )
                rows.append((service, latest_result.scalar_one_or_none()))
            return rows

    async def get_history(self, service_id: int, hours: int = 24) -> List[MonitoringLog]:
        now = datetime.utcnow()
        cutoff = now - timedelta(hours=hours)
        async with self.session_factory() as session:
            result = await session.execute(
                select(MonitoringLog)
                .where(
                    MonitoringLog.service_id == service_id,
                    MonitoringLog.checked_at >= cutoff,
                    MonitoringLog.checked_at <= now,
                )
                .order_by(MonitoringLog.checked_at, MonitoringLog.id)
            )
            return list(result.scalars().all())

    async def get_uptime_stats(self, service_id: int, hours: int = 24) -> dict:
        now = datetime.utcnow()
        cutoff = now - timedelta(hours=hours)
        async with self.session_factory() as session:
            result = await session.execute(
                select(
                    func.count(MonitoringLog.id),
                    func.sum(case((MonitoringLog.status == "up", 1), else_=0)),
                    func.avg(MonitoringLog.response_time),
                    func.min(MonitoringLog.response_time),
                    func.max(MonitoringLog.response_time),
                ).where(
                    MonitoringLog.service_id == service_id,
                    MonitoringLog.checked_at >= cutoff,
                    MonitoringLog.checked_at <= now,
                )
            )
            total, successful, avg_time, min_time, max_time = result.one()

        total = total or 0
        successful = int(successful or 0)
        return {
            "total_checks": total,
            "successful_checks": successful,
            "avg_response_time": round(float(avg_time), 2) if avg_time is not None else None,
            "min_response_time": min_time,
            "max_response_time": max_time,
            "uptime_percentage": uptime_percentage(successful, total),
        }

    async def get_all_services_stats(self, hours: int = 24) -> List[dict]:
        """Per-service uptime over the window for every active service."""
        now = datetime.utcnow()
        cutoff = now - timedelta(hours=hours)
        async with self.session_factory() as session:
            result = await session.execute(
                select(
                    Service.id,
                    Service.name,
                    Service.short_name,
                    Service.service_type,
                    func.count(MonitoringLog.id),
                    func.sum(case((MonitoringLog.status == "up", 1), else_=0)),
                    func.avg(MonitoringLog.response_time),
                )
                .outerjoin(
                    MonitoringLog,
                    (MonitoringLog.service_id == Service.id)
                    & (MonitoringLog.checked_at >= cutoff)
                    & (MonitoringLog.checked_at <= now),
                )
                .where(Service.is_active == 1)
                .group_by(Service.id, Service.name, Service.short_name, Service.service_type)
                .order_by(Service.name)
            )
            rows = result.all()

        stats = []
        for service_id, name, short_name, service_type, total, successful, avg_time in rows:
            total = total or 0
            successful = int(successful or 0)
            stats.append({
                "id": service_id,
                "name": name,
                "short_name": short_name,
                "service_type": service_type,
                "total_checks": total,
                "successful_checks": successful,
                "avg_response_time": round(float(avg_time), 2) if avg_time is not None else None,
                "uptime_percentage": uptime_percentage(successful, total),
            })
        return stats

    async def get_active_incidents(self) -> List[tuple]:
        """Unresolved incidents joined with their service, newest first."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Incident, Service.name, Service.short_name)
                .join(Service, Incident.service_id == Service.id)
                .where(Incident.is_resolved == 0)
                .order_by(Incident.started_at.desc())
            )
            return [tuple(row) for row in result.all()]

    async def get_all_incidents(self, limit: int = 100) -> List[tuple]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Incident, Service.name, Service.short_name)
                .join(Service, Incident.service_id == Service.id)
                .order_by(Incident.started_at.desc(), Incident.id.desc())
                .limit(limit)
            )
            return [tuple(row) for row in result.all()]

    async def get_service_incidents(self, service_id: int, limit: int = 50) -> List[Incident]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Incident)
                .where(Incident.service_id == service_id)
                .order_by(Incident.started_at.desc(), Incident.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    # Service administration

    async def get_service_by_short_name(self, short_name: str) -> Optional[Service]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Service).where(Service.short_name == short_name)
            )
            return result.scalar_one_or_none()

    async def create_service(self, data: dict) -> Service:
        async with self.session_factory() as session:
            service = Service(**data)
            session.add(service)
            await retry_on_lock(session.commit)
            await session.refresh(service)
            logger.info(f"Registered service {service.short_name} (#{service.id})")
            return service

    async def update_service(self, service_id: int, changes: dict) -> Optional[Service]:
        """Apply field changes to a service; None if it does not exist."""
        async with self.session_factory() as session:
            service = await session.get(Service, service_id)
            if service is None:
                return None
            for field, value in changes.items():
                setattr(service, field, value)
            await retry_on_lock(session.commit)
            await session.refresh(service)
            return service

    async def delete_service(self, service_id: int) -> bool:
        """Delete a service with its log entries and incidents."""
        async with self.session_factory() as session:
            service = await session.get(Service, service_id)
            if service is None:
                return False
            await session.delete(service)
            await retry_on_lock(session.commit)
            logger.info(f"Deleted service {service.short_name} (#{service_id})")
            return True

    # Housekeeping

    async def delete_old_logs(self, days_to_keep: int = 30) -> int:
        """Delete log entries older than the retention window."""
        cutoff = datetime.utcnow() - timedelta(days=days_to_keep)
        async with self.session_factory() as session:
            result = await session.execute(
                delete(MonitoringLog).where(MonitoringLog.checked_at < cutoff)
            )
            await retry_on_lock(session.commit)
            return result.rowcount or 0

    async def seed_services(self, services: Iterable[dict]) -> int:
        """Insert the given services if the registry is empty."""
        async with self.session_factory() as session:
            count = (await session.execute(select(func.count(Service.id)))).scalar() or 0
            if count > 0:
                logger.info("Service registry already populated, skipping seed")
                return 0

            added = 0
            for data in services:
                session.add(Service(**data))
                added += 1
            await retry_on_lock(session.commit)
            logger.info(f"Inserted {added} sample CA services")
            return added
