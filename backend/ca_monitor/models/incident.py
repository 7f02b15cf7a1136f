"""Incident model - outage records derived from check results."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship

from ..database import Base


class Incident(Base):
    """A period during which a service was down.

    At most one unresolved incident may exist per service; the partial
    unique index below rejects a second open row.
    """

    __tablename__ = "incidents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service_id = Column(Integer, ForeignKey("kca_services.id", ondelete="CASCADE"), nullable=False, index=True)
    started_at = Column(DateTime, nullable=False)
    resolved_at = Column(DateTime, nullable=True)
    severity = Column(String, nullable=False)  # major
    description = Column(String, nullable=True)
    is_resolved = Column(Integer, default=0, nullable=False)

    # Relationships
    service = relationship("Service", back_populates="incidents")

    __table_args__ = (
        Index(
            "uq_incidents_open_per_service",
            "service_id",
            unique=True,
            sqlite_where=text("is_resolved = 0"),
            postgresql_where=text("is_resolved = 0"),
        ),
    )
