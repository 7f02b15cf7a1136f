"""Service model - certification-authority endpoints being monitored."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from ..database import Base


class Service(Base):
    """A monitored CA endpoint - OCSP responder, CRL distribution point, TSP or CA site."""

    __tablename__ = "kca_services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    short_name = Column(String, nullable=False, unique=True)
    description = Column(String, nullable=True)
    service_type = Column(String, nullable=False)  # OCSP, CRL, TSP, CA, other
    endpoint_url = Column(String, nullable=False)
    check_method = Column(String, default="GET")  # GET, HEAD, POST
    expected_status = Column(Integer, default=200)
    is_active = Column(Integer, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    logs = relationship("MonitoringLog", back_populates="service", cascade="all, delete-orphan")
    incidents = relationship("Incident", back_populates="service", cascade="all, delete-orphan")


# Sample registry inserted into an empty database on first start
DEFAULT_SERVICES = [
    {
        "name": "PrivatBank CA (OCSP)",
        "short_name": "acsk-idd-ocsp",
        "description": "OCSP responder of the accredited certification center",
        "service_type": "OCSP",
        "endpoint_url": "http://acsk.privatbank.ua/services/ocsp/",
        "check_method": "GET",
        "expected_status": 200,
    },
    {
        "name": "IIT CA certificates (CRL)",
        "short_name": "idd-crl",
        "description": "CRL distribution point",
        "service_type": "CRL",
        "endpoint_url": "http://iit.com.ua/download/productfiles/CACertificates.p7b",
        "check_method": "HEAD",
        "expected_status": 200,
    },
    {
        "name": "PrivatBank CA (TSP)",
        "short_name": "privatbank-tsp",
        "description": "Timestamp service",
        "service_type": "TSP",
        "endpoint_url": "http://acsk.privatbank.ua/services/tsp/",
        "check_method": "GET",
        "expected_status": 200,
    },
    {
        "name": "Central Certification Authority",
        "short_name": "czo-main",
        "description": "Main central certification authority site",
        "service_type": "CA",
        "endpoint_url": "https://czo.gov.ua/",
        "check_method": "GET",
        "expected_status": 200,
    },
]
