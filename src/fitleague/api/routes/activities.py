"""League activity configuration routes."""

from fastapi import APIRouter, Depends, Request

from ..deps import get_activity_config_service
from ..middleware.auth import CurrentUser, get_current_user
from ..middleware.rate_limit import RATE_LIMIT_STANDARD, limiter
from ...services.activity_config_service import (
    ActivityConfigService,
    FrequencyUpdate,
    MinimumsUpdate,
)


router = APIRouter()


@router.get("/leagues/{league_id}/activities")
@limiter.limit(RATE_LIMIT_STANDARD)
async def list_activities(
    request: Request,
    league_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ActivityConfigService = Depends(get_activity_config_service),
):
    """Activities enabled in the league with their caps and thresholds."""
    configs = service.list_activities(league_id, current_user.user_id)
    return {"activities": [c.to_dict() for c in configs]}


@router.patch("/leagues/{league_id}/activities")
@limiter.limit(RATE_LIMIT_STANDARD)
async def update_activity_frequency(
    request: Request,
    league_id: str,
    body: FrequencyUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: ActivityConfigService = Depends(get_activity_config_service),
):
    """Change an activity's frequency cap (host only)."""
    config = service.update_frequency(league_id, current_user.user_id, body)
    return config.to_dict()


@router.put("/leagues/{league_id}/activities/{activity_id}/minimums")
@limiter.limit(RATE_LIMIT_STANDARD)
async def save_activity_minimums(
    request: Request,
    league_id: str,
    activity_id: str,
    body: MinimumsUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: ActivityConfigService = Depends(get_activity_config_service),
):
    """Set an activity's thresholds and age-group overrides."""
    config = service.save_minimums(league_id, activity_id, current_user.user_id, body)
    return config.to_dict()


@router.delete("/leagues/{league_id}/activities/{activity_id}/minimums")
@limiter.limit(RATE_LIMIT_STANDARD)
async def reset_activity_minimums(
    request: Request,
    league_id: str,
    activity_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ActivityConfigService = Depends(get_activity_config_service),
):
    """Clear an activity's thresholds."""
    config = service.reset_minimums(league_id, activity_id, current_user.user_id)
    return config.to_dict()


@router.post("/leagues/{league_id}/activities/default-minimums")
@limiter.limit(RATE_LIMIT_STANDARD)
async def initialize_default_minimums(
    request: Request,
    league_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ActivityConfigService = Depends(get_activity_config_service),
):
    """Apply default thresholds to measured activities without any."""
    configs = service.initialize_default_minimums(league_id, current_user.user_id)
    return {"activities": [c.to_dict() for c in configs]}
