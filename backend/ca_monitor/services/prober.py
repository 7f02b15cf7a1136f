"""Prober service - performs HTTP health checks against CA endpoints."""
import asyncio
import logging
from datetime import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

import httpx

logger = logging.getLogger(__name__)

USER_AGENT = "CA-Monitoring/1.0"
MAX_REDIRECTS = 5
SUPPORTED_METHODS = ("GET", "HEAD", "POST")


@dataclass(frozen=True)
class CheckResult:
    """Normalized outcome of one health check."""
    service_id: int
    status: str  # up, down
    response_time_ms: int
    status_code: Optional[int] = None
    error_message: Optional[str] = None

    @property
    def is_up(self) -> bool:
        return self.status == "up"


@dataclass(frozen=True)
class TypeValidation:
    """Service-type specific verdict on a response."""
    valid: bool
    message: Optional[str] = None


class ServiceType(str, Enum):
    OCSP = "OCSP"
    CRL = "CRL"
    TSP = "TSP"
    CA = "CA"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ServiceType":
        """Map a stored service_type string to a variant; unknown types are OTHER."""
        if not value:
            return cls.OTHER
        try:
            return cls(value.upper())
        except ValueError:
            return cls.OTHER


def _validate_ocsp(response: httpx.Response) -> TypeValidation:
    # Any answer means the responder is reachable
    content_type = response.headers.get("content-type", "")
    if "application/ocsp-response" in content_type or response.status_code == 200:
        return TypeValidation(valid=True)
    return TypeValidation(valid=True, message="Unexpected content type for OCSP service")


def _validate_crl(response: httpx.Response) -> TypeValidation:
    if response.status_code == 200:
        return TypeValidation(valid=True)
    return TypeValidation(valid=False, message="CRL not accessible")


def _validate_tsp(response: httpx.Response) -> TypeValidation:
    # 400 is the normal answer to a request without a signed query body
    if response.status_code in (200, 400):
        return TypeValidation(valid=True)
    return TypeValidation(valid=False, message="TSP service unavailable")


def _validate_ca(response: httpx.Response) -> TypeValidation:
    if response.status_code == 200:
        return TypeValidation(valid=True)
    return TypeValidation(valid=False, message="CA service unavailable")


def _validate_generic(response: httpx.Response) -> TypeValidation:
    return TypeValidation(valid=200 <= response.status_code < 400)


VALIDATORS: Dict[ServiceType, Callable[[httpx.Response], TypeValidation]] = {
    ServiceType.OCSP: _validate_ocsp,
    ServiceType.CRL: _validate_crl,
    ServiceType.TSP: _validate_tsp,
    ServiceType.CA: _validate_ca,
    ServiceType.OTHER: _validate_generic,
}


def validate_service_type(service_type: Optional[str], response: httpx.Response) -> TypeValidation:
    """Apply the secondary validation rule for a service type."""
    return VALIDATORS[ServiceType.parse(service_type)](response)


def _elapsed_ms(start: datetime) -> int:
    return int((datetime.now() - start).total_seconds() * 1000)


def _status_code_from_error(error: Exception) -> Optional[int]:
    response = getattr(error, "response", None)
    if isinstance(response, httpx.Response):
        return response.status_code
    return None


def _describe_error(error: Exception) -> str:
    if isinstance(error, httpx.TimeoutException):
        return f"Request timeout: {error}" if str(error) else "Request timeout"
    if isinstance(error, httpx.ConnectError):
        return f"Connection error: {error}"
    if isinstance(error, httpx.TooManyRedirects):
        return f"Too many redirects: {error}"
    return str(error) or error.__class__.__name__


class Prober:
    """Runs HTTP checks against services and normalizes the outcome."""

    def __init__(
        self,
        timeout: float = 10,
        verify: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.verify = verify
        # Injected in tests to avoid real network traffic
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            verify=self.verify,
            headers={"User-Agent": USER_AGENT},
            transport=self.transport,
        )

    async def check(self, service) -> CheckResult:
        """Check a single service.

        Network failures, timeouts and redirect loops produce a ``down``
        result; HTTP error statuses never raise.
        """
        method = (service.check_method or "GET").upper()
        if method not in SUPPORTED_METHODS:
            method = "GET"
        expected_status = service.expected_status or 200

        start = datetime.now()
        try:
            async with self._client() as client:
                # POST goes out without a body (e.g. OCSP responders)
                # Deadline for the whole exchange, across phases and redirect hops
                response = await asyncio.wait_for(
                    client.request(method, service.endpoint_url),
                    timeout=self.timeout,
                )
        except asyncio.TimeoutError:
            return CheckResult(
                service_id=service.id,
                status="down",
                response_time_ms=_elapsed_ms(start),
                error_message=f"Request timeout: no complete response within {self.timeout:g}s",
            )
        except httpx.HTTPError as e:
            return CheckResult(
                service_id=service.id,
                status="down",
                response_time_ms=_elapsed_ms(start),
                status_code=_status_code_from_error(e),
                error_message=_describe_error(e),
            )

        response_time = _elapsed_ms(start)

        status_ok = response.status_code == expected_status
        validation = validate_service_type(service.service_type, response)

        if not validation.valid:
            error_message = validation.message
        elif not status_ok:
            error_message = f"Expected status {expected_status}, got {response.status_code}"
        else:
            # Advisory note only, the check still counts as up
            error_message = validation.message

        return CheckResult(
            service_id=service.id,
            status="up" if status_ok and validation.valid else "down",
            response_time_ms=response_time,
            status_code=response.status_code,
            error_message=error_message,
        )

    async def _check_safely(self, service) -> CheckResult:
        try:
            return await self.check(service)
        except Exception as e:
            logger.exception(f"Unexpected error checking service {service.id}")
            return CheckResult(
                service_id=service.id,
                status="down",
                response_time_ms=0,
                error_message=str(e) or e.__class__.__name__,
            )

    async def check_multiple_services(self, services: Iterable) -> List[CheckResult]:
        """Check all services concurrently, one result per service."""
        return list(await asyncio.gather(*[self._check_safely(s) for s in services]))
