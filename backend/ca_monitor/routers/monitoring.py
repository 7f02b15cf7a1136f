"""Monitoring control API - scheduler status, manual trigger, start and stop."""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends

from ..dependencies import get_scheduler
from ..schemas.monitoring import ActionResponse, SchedulerStatus
from ..services.scheduler import SchedulerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/monitoring", tags=["monitoring"])


@router.get("/status", response_model=SchedulerStatus)
async def get_monitoring_status(scheduler: SchedulerService = Depends(get_scheduler)):
    """Get scheduler state and cycle counters."""
    return scheduler.get_status()


@router.post("/trigger", response_model=ActionResponse)
async def trigger_check(
    background_tasks: BackgroundTasks,
    scheduler: SchedulerService = Depends(get_scheduler),
):
    """Run a monitoring cycle now, in the background."""
    logger.info("Manual monitoring check requested via API")
    background_tasks.add_task(scheduler.trigger_manual_check)

    return ActionResponse(
        success=True,
        message="Monitoring check triggered",
        note="Check is running asynchronously. Results will be available shortly.",
    )


@router.post("/start", response_model=ActionResponse)
async def start_scheduler(scheduler: SchedulerService = Depends(get_scheduler)):
    """Start the monitoring scheduler."""
    scheduler.start()
    return ActionResponse(
        success=True,
        message="Monitoring scheduler started",
        status=scheduler.get_status(),
    )


@router.post("/stop", response_model=ActionResponse)
async def stop_scheduler(scheduler: SchedulerService = Depends(get_scheduler)):
    """Stop the monitoring scheduler."""
    scheduler.stop()
    return ActionResponse(
        success=True,
        message="Monitoring scheduler stopped",
        status=scheduler.get_status(),
    )
