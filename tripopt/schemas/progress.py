"""
schemas/progress.py
-------------------
Pipeline stages and the ephemeral progress records streamed to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from tripopt.modules.resilience.error_classifier import ClassifiedError


class OptimizationStage(Enum):
    COLLECTING = "collecting"
    NORMALIZING = "normalizing"
    SELECTING = "selecting"
    ROUTING = "routing"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (OptimizationStage.COMPLETE, OptimizationStage.ERROR)


# Percentage reported when a stage is entered
STAGE_PERCENTAGE: dict[OptimizationStage, int] = {
    OptimizationStage.COLLECTING: 0,
    OptimizationStage.NORMALIZING: 10,
    OptimizationStage.SELECTING: 40,
    OptimizationStage.ROUTING: 70,
    OptimizationStage.COMPLETE: 100,
    OptimizationStage.ERROR: 0,
}


@dataclass(frozen=True)
class OptimizationProgress:
    stage: OptimizationStage
    percentage: int
    message: str
    error: Optional[ClassifiedError] = None

    def to_dict(self) -> dict:
        return {
            "stage": self.stage.value,
            "percentage": self.percentage,
            "message": self.message,
            "error": self.error.to_dict() if self.error else None,
        }


ProgressCallback = Callable[[OptimizationProgress], None]
