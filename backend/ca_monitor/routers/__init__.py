"""API routers."""
from .services import router as services_router
from .status import router as status_router
from .monitoring import router as monitoring_router

__all__ = ["services_router", "status_router", "monitoring_router"]
