"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .database import init_db, close_db, async_session
from .models.service import DEFAULT_SERVICES
from .routers import services_router, status_router, monitoring_router
from .services.cycle_runner import MonitoringCycleRunner
from .services.prober import Prober
from .services.scheduler import SchedulerService
from .services.store import MonitoringStore

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting CA Monitor")

    # Tables live on the engine the store writes to
    bind = app.state.store.bind
    await init_db(bind)
    logger.info("Database initialized")

    if settings.seed_sample_services:
        await app.state.store.seed_services(DEFAULT_SERVICES)

    if settings.scheduler_autostart:
        app.state.scheduler.start()

    yield

    app.state.scheduler.shutdown()
    await close_db(bind)
    logger.info("Shutdown complete")


def build_scheduler(store: MonitoringStore) -> SchedulerService:
    """Wire prober, cycle runner and scheduler from settings."""
    prober = Prober(timeout=settings.check_timeout, verify=settings.check_verify_tls)
    runner = MonitoringCycleRunner(store, prober)
    return SchedulerService(
        runner,
        interval_minutes=settings.monitoring_interval,
        initial_delay_seconds=settings.initial_check_delay,
        log_retention_days=settings.log_retention_days,
    )


def create_app(
    store: MonitoringStore | None = None,
    scheduler: SchedulerService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="CA Monitor",
        description="Availability monitoring for OCSP, CRL, TSP and CA services",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.store = store or MonitoringStore(async_session)
    app.state.scheduler = scheduler or build_scheduler(app.state.store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(services_router)
    app.include_router(status_router)
    app.include_router(monitoring_router)

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)
