"""
api/routes/optimize.py
-----------------------
POST /v1/optimize

Runs the staged optimization pipeline over a snapshot of places and members
supplied in the request body and returns the result JSON together with the
progress events emitted during the run.  Nothing is persisted.
"""

from __future__ import annotations

from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from tripopt.modules.resilience.error_classifier import ClassifiedError, ErrorType
from tripopt.modules.tool_usage.data_provider import InMemoryTripDataProvider
from tripopt.pipeline.orchestrator import run_optimization
from tripopt.schemas.progress import OptimizationProgress
from tripopt.schemas.settings import OptimizationSettings
from tripopt.schemas.trip import Location, TripContext

router = APIRouter()


# ── Request schemas ────────────────────────────────────────────────────────────

class LocationIn(BaseModel):
    lat: float
    lng: float


class PlaceIn(BaseModel):
    id: str
    name: str
    user_id: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    category: Optional[str] = None
    wish_level: Optional[int] = Field(None, description="1-5, 5 = must-visit")
    rating: Optional[float] = Field(None, description="0-5, 0 = unrated")
    stay_duration_minutes: Optional[int] = None


class MemberIn(BaseModel):
    user_id: str
    name: str = ""
    can_optimize: bool = True


class SettingsIn(BaseModel):
    """Optional overrides; omitted fields keep the OptimizationSettings defaults."""
    fairness_weight: Optional[float] = Field(None, description="0-1")
    efficiency_weight: Optional[float] = Field(None, description="0-1")
    include_meals: Optional[bool] = None
    preferred_transport: Optional[str] = Field(None, description="walking | public_transport | car | flight")
    max_places_per_day: Optional[int] = None
    max_total_duration_minutes: Optional[int] = None
    max_daily_hours: Optional[float] = None
    day_start_hour: Optional[int] = Field(None, description="0-23")
    day_end_hour: Optional[int] = Field(None, description="1-24")
    prioritize_must_visit: Optional[bool] = None
    retry_profile: Optional[str] = Field(None, description="default | aggressive | conservative")
    priority_weight: Optional[float] = None
    rating_weight: Optional[float] = None
    location_weight: Optional[float] = None


class OptimizeRequest(BaseModel):
    trip_id: str
    start_date: str = Field(..., description="ISO-8601 date YYYY-MM-DD")
    end_date:   str = Field(..., description="ISO-8601 date YYYY-MM-DD")
    start_location: Optional[LocationIn] = None
    places:  list[PlaceIn] = Field(default_factory=list)
    members: list[MemberIn] = Field(default_factory=list)
    settings: SettingsIn = Field(default_factory=SettingsIn)


# ── Error mapping ──────────────────────────────────────────────────────────────

def _status_for(error: ClassifiedError) -> int:
    if error.type in (ErrorType.VALIDATION_ERROR, ErrorType.DATA_ERROR):
        return 422
    if error.type is ErrorType.PERMISSION_ERROR:
        return 403
    return 503


# ── Endpoint ───────────────────────────────────────────────────────────────────

@router.post("/optimize", summary="Optimize a group trip into daily schedules")
async def optimize(req: OptimizeRequest) -> dict:
    try:
        start = date_type.fromisoformat(req.start_date)
        end = date_type.fromisoformat(req.end_date)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid date format: {exc}") from exc

    trip = TripContext(
        trip_id=req.trip_id,
        start_date=start,
        end_date=end,
        start_location=(
            Location(lat=req.start_location.lat, lng=req.start_location.lng)
            if req.start_location else None
        ),
    )
    provider = InMemoryTripDataProvider()
    provider.add_trip(
        req.trip_id,
        places=[p.model_dump(exclude_none=True) for p in req.places],
        members=[m.model_dump() for m in req.members],
    )

    events: list[dict] = []

    def on_progress(progress: OptimizationProgress) -> None:
        events.append(progress.to_dict())

    try:
        result = await run_optimization(
            trip,
            OptimizationSettings.from_dict(req.settings.model_dump(exclude_none=True)),
            on_progress,
            data_provider=provider,
        )
    except ClassifiedError as err:
        raise HTTPException(status_code=_status_for(err), detail=err.to_dict()) from err

    return {**result.to_dict(), "progress": events}
