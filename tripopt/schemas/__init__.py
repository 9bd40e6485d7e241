"""schemas: immutable input records and derived optimization output records."""
from tripopt.schemas.trip import Location, Member, Place, TripContext
from tripopt.schemas.settings import OptimizationSettings
from tripopt.schemas.preferences import MemberPreferences, NormalizationResult
from tripopt.schemas.schedule import (
    DailySchedule,
    MealBreak,
    OptimizationResult,
    OptimizationScore,
    ScheduledPlace,
    ScoredPlace,
    SelectionResult,
    UnscheduledPlace,
)
from tripopt.schemas.progress import OptimizationProgress, OptimizationStage

__all__ = [
    "Location",
    "Member",
    "Place",
    "TripContext",
    "OptimizationSettings",
    "MemberPreferences",
    "NormalizationResult",
    "DailySchedule",
    "MealBreak",
    "OptimizationResult",
    "OptimizationScore",
    "ScheduledPlace",
    "ScoredPlace",
    "SelectionResult",
    "UnscheduledPlace",
    "OptimizationProgress",
    "OptimizationStage",
]
