"""
pipeline/orchestrator.py
-------------------------
Staged optimization pipeline.

  collecting (0%) -> normalizing (10%) -> selecting (40%) -> routing (70%) -> complete (100%)
                                       |
                         any failure at any stage -> error (0%)

Each stage is one call wrapped by with_retry; the orchestrator never retries
across stages.  Stages run strictly in sequence inside a single task.  The
progress callback is invoked on every transition; on failure it receives the
classified error (stage=error, 0%) and the error is re-raised to the caller.

Scoring runs inside the routing stage, right after the schedule is built.

Usage:
    provider = InMemoryTripDataProvider()
    provider.add_trip("trip_1", places=[...], members=[...])
    result = await run_optimization(trip, settings, on_progress=print,
                                    data_provider=provider)
"""

from __future__ import annotations

import logging
import time as _time_mod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from tripopt.modules.observability.logger import StructuredLogger
from tripopt.modules.planning.place_selector import PlaceSelector, scoring_anchor
from tripopt.modules.planning.preference_normalizer import normalize_preferences
from tripopt.modules.planning.schedule_builder import ScheduleBuilder, ScheduleBuildResult
from tripopt.modules.planning.score_aggregator import aggregate_score
from tripopt.modules.resilience.error_classifier import (
    ClassifiedError,
    OptimizationInputError,
    classify_error,
    generate_correlation_id,
)
from tripopt.modules.resilience.retry import (
    CancellationToken,
    RetryConfig,
    get_retry_config,
    with_retry,
)
from tripopt.modules.tool_usage.data_provider import TripDataProvider
from tripopt.modules.tool_usage.distance_tool import DistanceProvider, DistanceTool
from tripopt.modules.validation.input_validator import (
    filter_valid,
    placeholder_place,
    validate_place_record,
    validate_settings,
    validate_trip_context,
)
from tripopt.schemas.progress import (
    STAGE_PERCENTAGE,
    OptimizationProgress,
    OptimizationStage,
    ProgressCallback,
)
from tripopt.schemas.schedule import OptimizationResult, UnscheduledPlace
from tripopt.schemas.settings import OptimizationSettings
from tripopt.schemas.trip import Member, Place, TripContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Collected:
    places: list[Place]
    members: list[Member]
    invalid: list[UnscheduledPlace]


@dataclass(frozen=True)
class _RunContext:
    correlation_id: str
    retry_config: RetryConfig
    cancel_token: Optional[CancellationToken]
    on_progress: Optional[ProgressCallback]


class OptimizationPipeline:
    """
    Sequences normalizer, selector, schedule builder and score aggregator.

    One instance may serve many runs; a run keeps its state in locals and
    in a per-run context, so concurrent runs share nothing mutable.
    """

    def __init__(
        self,
        data_provider: TripDataProvider,
        distance_tool: DistanceProvider | None = None,
        retry_config: RetryConfig | None = None,
        event_logger: StructuredLogger | None = None,
    ) -> None:
        self.data_provider = data_provider
        self.distance_tool = distance_tool or DistanceTool()
        self.retry_config = retry_config
        self.events = event_logger or StructuredLogger()

    # ── Public entry point ────────────────────────────────────────────────────

    async def run(
        self,
        trip: TripContext,
        settings: OptimizationSettings | None = None,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> OptimizationResult:
        """
        Run one optimization.

        Returns:
            OptimizationResult with one DailySchedule per trip day.

        Raises:
            ClassifiedError carrying the failing stage and the run's correlation id.
        """
        settings = settings or OptimizationSettings()
        ctx = _RunContext(
            correlation_id=generate_correlation_id(),
            retry_config=self.retry_config or get_retry_config(settings.retry_profile),
            cancel_token=cancel_token,
            on_progress=on_progress,
        )
        _t0 = _time_mod.perf_counter()
        current = OptimizationStage.COLLECTING
        try:
            collected: _Collected = await self._stage(
                ctx, current, "Collecting places and members",
                lambda: self._collect(trip, settings),
            )

            current = OptimizationStage.NORMALIZING
            normalization = await self._stage(
                ctx, current, f"Normalizing preferences for {len(collected.members)} members",
                lambda: normalize_preferences(collected.places, collected.members),
            )

            current = OptimizationStage.SELECTING
            anchor = scoring_anchor(collected.places, trip.start_location)
            selector = PlaceSelector(settings, num_days=trip.num_days)
            selection = await self._stage(
                ctx, current, f"Selecting from {len(collected.places)} candidate places",
                lambda: selector.select(collected.places, anchor),
            )

            current = OptimizationStage.ROUTING
            builder = ScheduleBuilder(settings, self.distance_tool, trip.start_location)
            built: ScheduleBuildResult = await self._stage(
                ctx, current, f"Building schedules for {trip.num_days} day(s)",
                lambda: builder.build(selection, trip.dates()),
            )
            score = aggregate_score(settings, normalization, built.daily_schedules)

        except Exception as exc:  # noqa: BLE001 - every failure leaves as ClassifiedError
            error = classify_error(exc, stage=current.value, correlation_id=ctx.correlation_id)
            self._fail(ctx, error, _t0)
            self.events.close(ctx.correlation_id)
            if error is exc:
                raise
            raise error from exc

        execution_ms = int((_time_mod.perf_counter() - _t0) * 1000)
        result = OptimizationResult(
            daily_schedules=built.daily_schedules,
            optimization_score=score,
            execution_time_ms=execution_ms,
            correlation_id=ctx.correlation_id,
            selection=selection,
            normalization=normalization,
            unscheduled_places=(
                collected.invalid
                + selection.unscheduled_places
                + built.unscheduled_places
            ),
        )

        scheduled = len(result.scheduled_place_ids)
        self._report(
            ctx, OptimizationStage.COMPLETE,
            f"Optimization complete: {scheduled} places over {trip.num_days} day(s), "
            f"score {score.overall_percent}%",
        )
        self.events.log(ctx.correlation_id, "PERFORMANCE", {
            "component": "OptimizationPipeline.run",
            "duration_ms": round((_time_mod.perf_counter() - _t0) * 1000, 2),
            "scheduled_places": scheduled,
            "overall_score": round(score.overall, 4),
        })
        self.events.close(ctx.correlation_id)
        return result

    # ── Stages ────────────────────────────────────────────────────────────────

    async def _collect(self, trip: TripContext, settings: OptimizationSettings) -> _Collected:
        checked = validate_settings(settings)
        if not checked:
            raise OptimizationInputError(
                f"invalid settings: {checked.summary}", code="INVALID_SETTINGS"
            )
        checked = validate_trip_context(trip)
        if not checked:
            raise OptimizationInputError(f"invalid trip: {checked.summary}", code="INVALID_TRIP")

        place_records = await self.data_provider.get_places(trip.trip_id)
        member_records = await self.data_provider.get_members(trip.trip_id)

        valid, rejected = filter_valid(place_records, validate_place_record)
        invalid = [
            UnscheduledPlace(
                placeholder_place(r.record),
                f"invalid place record: {r.summary}",
                OptimizationStage.COLLECTING.value,
            )
            for r in rejected
        ]
        return _Collected(
            places=[Place.from_record(r) for r in valid],
            members=[Member.from_record(m) for m in member_records],
            invalid=invalid,
        )

    async def _stage(
        self,
        ctx: _RunContext,
        stage: OptimizationStage,
        message: str,
        operation: Callable[[], Awaitable[Any] | Any],
    ) -> Any:
        self._report(ctx, stage, message)
        self.events.log(ctx.correlation_id, "STAGE_START", {"stage": stage.value})
        _t = _time_mod.perf_counter()

        def on_retry(error: ClassifiedError, retry_number: int, delay: float) -> None:
            self.events.log(ctx.correlation_id, "RETRY", {
                "stage": stage.value,
                "retry_number": retry_number,
                "delay_s": round(delay, 3),
                "error": error.to_dict(),
            })

        result = await with_retry(
            operation,
            ctx.retry_config,
            stage=stage.value,
            correlation_id=ctx.correlation_id,
            cancel_token=ctx.cancel_token,
            operation_name=f"{stage.value} stage",
            on_retry=on_retry,
        )
        self.events.log(ctx.correlation_id, "STAGE_COMPLETE", {
            "stage": stage.value,
            "duration_ms": round((_time_mod.perf_counter() - _t) * 1000, 2),
        })
        return result

    # ── Reporting ─────────────────────────────────────────────────────────────

    def _report(
        self,
        ctx: _RunContext,
        stage: OptimizationStage,
        message: str,
        error: ClassifiedError | None = None,
    ) -> None:
        logger.info("[%s] %s: %s", ctx.correlation_id, stage.value, message)
        if ctx.on_progress is None:
            return
        progress = OptimizationProgress(
            stage=stage,
            percentage=STAGE_PERCENTAGE[stage],
            message=message,
            error=error,
        )
        try:
            ctx.on_progress(progress)
        except Exception:  # noqa: BLE001 - a broken listener never fails a run
            logger.exception("Progress callback raised at stage %s; ignoring", stage.value)

    def _fail(self, ctx: _RunContext, error: ClassifiedError, started: float) -> None:
        self.events.log(ctx.correlation_id, "PIPELINE_ERROR", {
            "error": error.to_dict(),
            "duration_ms": round((_time_mod.perf_counter() - started) * 1000, 2),
        })
        self._report(
            ctx, OptimizationStage.ERROR,
            f"Optimization failed at {error.stage}: {error.message}",
            error=error,
        )


async def run_optimization(
    trip: TripContext,
    settings: OptimizationSettings | None = None,
    on_progress: ProgressCallback | None = None,
    *,
    data_provider: TripDataProvider,
    distance_tool: DistanceProvider | None = None,
    retry_config: RetryConfig | None = None,
    cancel_token: CancellationToken | None = None,
    event_logger: StructuredLogger | None = None,
) -> OptimizationResult:
    """Convenience wrapper: build a pipeline and run it once."""
    pipeline = OptimizationPipeline(
        data_provider,
        distance_tool=distance_tool,
        retry_config=retry_config,
        event_logger=event_logger,
    )
    return await pipeline.run(trip, settings, on_progress, cancel_token)
