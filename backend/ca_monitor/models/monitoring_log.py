"""MonitoringLog model - append-only check history."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base


class MonitoringLog(Base):
    """One persisted check result."""

    __tablename__ = "monitoring_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service_id = Column(Integer, ForeignKey("kca_services.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String, nullable=False)  # up, down
    response_time = Column(Integer, nullable=True)  # milliseconds
    status_code = Column(Integer, nullable=True)
    error_message = Column(String, nullable=True)
    checked_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    service = relationship("Service", back_populates="logs")
