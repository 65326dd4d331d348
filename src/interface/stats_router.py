"""Statistics REST endpoints (points, streaks, badges)."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from src.core.config import constants
from src.domain.update_models import BadgesReplace, StatsUpdate
from src.interface.responses import success_response
from src.services import stats_service, task_service


router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("")
async def get_stats() -> JSONResponse:
    """Get the statistics aggregate, creating the default one if needed."""
    stats = await stats_service.get_stats()
    return success_response(stats)


@router.post("")
async def initialize_stats() -> JSONResponse:
    """Create the statistics record if it does not exist yet."""
    stats, created = await stats_service.initialize_stats()
    if created:
        return success_response(stats, status_code=constants.HTTP_CREATED)
    return success_response(stats, message="Stats already exist")


@router.patch("")
async def update_stats(payload: StatsUpdate | None = None) -> JSONResponse:
    """Update points, streaks, counters or badges."""
    stats = await stats_service.update_stats(payload or StatsUpdate())
    return success_response(stats)


@router.get("/summary")
async def get_summary() -> JSONResponse:
    """Return progress and badge tallies."""
    summary = await stats_service.get_summary()
    return success_response(summary)


@router.post("/recompute")
async def recompute_stats() -> JSONResponse:
    """Recompute statistics from the current task set."""
    result = await task_service.refresh_statistics()
    return success_response(result)


@router.put("/badges")
async def replace_badges(payload: BadgesReplace) -> JSONResponse:
    """Replace all badges at once."""
    stats = await stats_service.replace_badges(payload)
    return success_response(stats)


@router.patch("/badge/{badge_id}")
async def unlock_badge(badge_id: str) -> JSONResponse:
    """Unlock a specific badge."""
    stats = await stats_service.unlock_badge(badge_id)
    return success_response(stats)
