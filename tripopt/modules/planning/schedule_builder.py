"""
modules/planning/schedule_builder.py
--------------------------------------
Lays the selected places into one DailySchedule per trip day.

Per day d:
  1. Start the clock at the day-start hour.
  2. For the next place in selection order:
       - resolve the leg from the previous stop (transport mode by distance,
         travel minutes from the distance provider)
       - insert any meal that is due (see below)
       - place the visit if all of these hold:
           count + 1                          <= max_places_per_day
           stay_sum + stay                    <= max_total_duration_minutes
           stay_sum + travel_sum + leg + stay <= max_daily_minutes
           clock + leg + stay                 <= day end
         otherwise the place rolls to day d+1 in the same relative order,
         or is dropped when the day is still empty.
  3. At day end, insert the remaining meals that start before day end.

The previous stop carries across days; the trip's first visit starts from
the trip start location, or with zero travel when there is none.

Meals (include_meals=True):
  A meal is due once the clock has reached its start and it has not been
  served yet; it is inserted at the next place boundary.  Before the day's
  first visit, a window whose latest start (start +
  MEAL_LATEST_START_OFFSET_MIN) has already passed is skipped.  Meals that
  start before the day-start hour are not inserted, and a meal never runs
  past day end.  Meal time moves the clock but does not count against the
  stay + travel budget.

Places without a location are reported as "location unavailable"; a place
that cannot fit on an empty day (meals included) as "exceeds daily time
budget"; places still queued after the last day as "no remaining trip days".
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from tripopt import config
from tripopt.modules.planning.transport import TransportMode, classify_transport_mode
from tripopt.modules.tool_usage.distance_tool import DistanceProvider, DistanceTool
from tripopt.schemas.schedule import (
    DailySchedule,
    MealBreak,
    ScheduledPlace,
    SelectionResult,
    UnscheduledPlace,
)
from tripopt.schemas.settings import OptimizationSettings
from tripopt.schemas.trip import Location, Place

logger = logging.getLogger(__name__)

REASON_NO_LOCATION = "location unavailable"
REASON_TOO_LONG = "exceeds daily time budget"
REASON_NO_DAYS = "no remaining trip days"


@dataclass(frozen=True)
class _Leg:
    mode: str
    minutes: int
    distance_km: float


@dataclass
class ScheduleBuildResult:
    daily_schedules: list[DailySchedule]
    unscheduled_places: list[UnscheduledPlace] = field(default_factory=list)


class ScheduleBuilder:

    def __init__(
        self,
        settings: OptimizationSettings,
        distance_tool: DistanceProvider | None = None,
        start_location: Optional[Location] = None,
    ) -> None:
        self.settings = settings
        self.distance_tool = distance_tool or DistanceTool()
        self.start_location = start_location

    # ── Public entry point ────────────────────────────────────────────────────

    async def build(self, selection: SelectionResult, dates: list[date]) -> ScheduleBuildResult:
        unscheduled: list[UnscheduledPlace] = []
        queue: deque[Place] = deque()
        for sp in selection.scheduled_places:
            if sp.place.location is None:
                unscheduled.append(UnscheduledPlace(sp.place, REASON_NO_LOCATION, "routing"))
            else:
                queue.append(sp.place)

        prev: Optional[Location] = self.start_location
        days: list[DailySchedule] = []
        for day_index, day_date in enumerate(dates):
            day, prev = await self._build_day(day_index, day_date, queue, prev, unscheduled)
            days.append(day)

        for place in queue:
            unscheduled.append(UnscheduledPlace(place, REASON_NO_DAYS, "routing"))
        if queue:
            logger.info("%d place(s) left over after the last trip day", len(queue))

        return ScheduleBuildResult(daily_schedules=days, unscheduled_places=unscheduled)

    # ── Day loop ──────────────────────────────────────────────────────────────

    async def _build_day(
        self,
        day_index: int,
        day_date: date,
        queue: deque[Place],
        prev: Optional[Location],
        unscheduled: list[UnscheduledPlace],
    ) -> tuple[DailySchedule, Optional[Location]]:
        s = self.settings
        day = DailySchedule(date=day_date, day_index=day_index)
        day_start, day_end = s.day_start_minutes, s.day_end_minutes
        clock = day_start
        stay_sum = travel_sum = 0
        consumed: set[str] = set()

        while queue:
            place = queue[0]
            leg = await self._leg(prev, place.location)
            stay = place.stay_duration_minutes

            clock = self._insert_due_meals(day, clock, consumed, first_visit=not day.places)

            fits = (
                len(day.places) + 1 <= s.max_places_per_day
                and stay_sum + stay <= s.max_total_duration_minutes
                and stay_sum + travel_sum + leg.minutes + stay <= s.max_daily_minutes
                and clock + leg.minutes + stay <= day_end
            )
            if not fits:
                if day.places:
                    break
                # Every day starts the same way, so a miss on an empty day is final.
                queue.popleft()
                unscheduled.append(UnscheduledPlace(place, REASON_TOO_LONG, "routing"))
                continue

            queue.popleft()
            arrival = clock + leg.minutes
            departure = arrival + stay
            day.places.append(ScheduledPlace(
                place=place,
                arrival_minute=arrival,
                departure_minute=departure,
                transport_mode=leg.mode,
                travel_time_from_previous_minutes=leg.minutes,
                distance_from_previous_km=leg.distance_km,
                order_in_day=len(day.places) + 1,
            ))
            clock = departure
            stay_sum += stay
            travel_sum += leg.minutes
            prev = place.location

        if day.places:
            self._insert_closing_meals(day, clock, consumed)
        else:
            day.meals.clear()
        day.total_travel_minutes = travel_sum
        day.total_visit_minutes = stay_sum
        return day, prev

    # ── Transport ─────────────────────────────────────────────────────────────

    async def _leg(self, origin: Optional[Location], destination: Location) -> _Leg:
        preferred = TransportMode(self.settings.preferred_transport)
        if origin is None:
            return _Leg(mode=preferred.value, minutes=0, distance_km=0.0)
        straight_km = self.distance_tool.calculate(
            origin.lat, origin.lng, destination.lat, destination.lng
        )
        mode = classify_transport_mode(straight_km, preferred)
        estimate = await self.distance_tool.estimate(origin, destination, mode.value)
        return _Leg(
            mode=mode.value,
            minutes=int(round(estimate.travel_minutes)),
            distance_km=estimate.distance_km,
        )

    # ── Meals ─────────────────────────────────────────────────────────────────

    def _meal_windows(self) -> list[tuple[str, int, int]]:
        """(meal_type, start_minute, duration) for meals that fit the day window."""
        if not self.settings.include_meals:
            return []
        start = self.settings.day_start_minutes
        return [
            (meal, hour * 60, duration)
            for meal, (hour, duration) in config.MEAL_WINDOWS.items()
            if hour * 60 >= start
        ]

    def _insert_due_meals(
        self,
        day: DailySchedule,
        clock: int,
        consumed: set[str],
        *,
        first_visit: bool,
    ) -> int:
        """
        Insert every unconsumed meal whose start the clock has reached.

        Before the first visit of the day a window already past its latest
        start is skipped; once visits are running, a meal crossed during a
        visit is served at the next boundary however late.
        """
        day_end = self.settings.day_end_minutes
        for meal, start, duration in self._meal_windows():
            if meal in consumed or clock >= day_end or clock < start:
                continue
            if first_visit and clock >= start + config.MEAL_LATEST_START_OFFSET_MIN:
                continue
            clock = self._add_meal(day, meal, clock, duration, consumed)
        return clock

    def _insert_closing_meals(self, day: DailySchedule, clock: int, consumed: set[str]) -> None:
        for meal, start, duration in self._meal_windows():
            if meal in consumed:
                continue
            begin = max(clock, start)
            if begin < self.settings.day_end_minutes:
                clock = self._add_meal(day, meal, begin, duration, consumed)

    def _add_meal(
        self,
        day: DailySchedule,
        meal: str,
        begin: int,
        duration: int,
        consumed: set[str],
    ) -> int:
        end = min(begin + duration, self.settings.day_end_minutes)
        day.meals.append(MealBreak(meal, begin, end))
        consumed.add(meal)
        return end
