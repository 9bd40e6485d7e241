import pytest

from tripopt.modules.planning.place_selector import (
    REASON_DURATION_LIMIT,
    REASON_LOW_SCORE,
    REASON_PLACE_LIMIT,
    PlaceScorer,
    PlaceSelector,
    scoring_anchor,
)
from tripopt.schemas.settings import OptimizationSettings
from tripopt.schemas.trip import Location

from conftest import BASE_LAT, BASE_LNG

ANCHOR = Location(BASE_LAT, BASE_LNG)


def _ids(places):
    return [sp.place.id for sp in places]


# ── Scoring ───────────────────────────────────────────────────────────────────

def test_score_components(make_place):
    scorer = PlaceScorer()
    unlocated = make_place(wish_level=5, rating=5.0, stay=240, km_north=None)
    assert scorer.score(unlocated, ANCHOR) == pytest.approx(0.4 + 0.3 - 0.1)

    at_anchor = make_place(wish_level=5, rating=5.0, stay=240, km_north=0.0)
    assert scorer.score(at_anchor, ANCHOR) == pytest.approx(0.9)

    five_km = make_place(wish_level=5, rating=5.0, stay=240, km_north=5.0)
    assert scorer.proximity(five_km, ANCHOR) == pytest.approx(0.5, abs=1e-3)

    short = make_place(wish_level=5, rating=5.0, stay=60, km_north=None)
    assert scorer.score(short, ANCHOR) == pytest.approx(0.7 - 0.025)


def test_score_is_clamped(make_place):
    scorer = PlaceScorer()
    assert scorer.score(make_place(wish_level=1, rating=0.0, stay=600, km_north=None)) == 0.0
    heavy = PlaceScorer(priority_weight=1.0, rating_weight=1.0, location_weight=1.0)
    assert heavy.score(make_place(wish_level=5, rating=5.0, stay=30), ANCHOR) == 1.0


def test_scoring_anchor(make_place):
    start = Location(1.0, 2.0)
    places = [make_place(km_north=0.0), make_place(km_north=2.0), make_place(km_north=None)]
    assert scoring_anchor(places, start) is start
    centroid = scoring_anchor(places)
    assert centroid.lng == pytest.approx(BASE_LNG)
    assert BASE_LAT < centroid.lat < places[1].location.lat
    assert scoring_anchor([make_place(km_north=None)]) is None


# ── Selection ─────────────────────────────────────────────────────────────────

def test_ten_place_scenario_keeps_must_visit_within_budgets(make_place):
    places = [make_place(wish_level=5, rating=4.5, stay=90, km_north=0.5, place_id="must")]
    for i in range(9):
        places.append(make_place(
            wish_level=(i % 4) + 1, rating=3.0 + (i % 3) * 0.5, stay=60 + 15 * (i % 4),
            km_north=float(i), place_id=f"c{i}",
        ))
    settings = OptimizationSettings(max_places_per_day=6, max_total_duration_minutes=480)
    result = PlaceSelector(settings).select(places, scoring_anchor(places))

    assert "must" in _ids(result.scheduled_places)
    assert len(result.scheduled_places) <= 6
    assert result.total_duration_minutes <= 480
    assert len(result.scheduled_places) + len(result.unscheduled_places) == 10


def test_must_visit_selected_despite_low_score(make_place):
    must = make_place(wish_level=5, rating=0.0, stay=240, km_north=None)
    result = PlaceSelector(OptimizationSettings()).select([must])
    assert result.scheduled_places[0].score < 0.5
    assert _ids(result.scheduled_places) == [must.id]


def test_rejection_reasons(make_place):
    settings = OptimizationSettings(max_places_per_day=2, max_total_duration_minutes=200)
    places = [
        make_place(wish_level=5, rating=5.0, stay=90, place_id="first"),
        make_place(wish_level=5, rating=5.0, stay=150, place_id="too_long"),
        make_place(wish_level=1, rating=1.0, stay=60, km_north=None, place_id="weak"),
        make_place(wish_level=5, rating=4.0, stay=60, place_id="second"),
        make_place(wish_level=5, rating=3.5, stay=30, place_id="overflow"),
    ]
    result = PlaceSelector(settings).select(places, ANCHOR)
    reasons = {u.place.id: u.reason for u in result.unscheduled_places}

    assert _ids(result.scheduled_places) == ["first", "second"]
    assert reasons["too_long"] == REASON_DURATION_LIMIT
    assert reasons["overflow"] == REASON_PLACE_LIMIT
    assert reasons["weak"] == REASON_PLACE_LIMIT
    assert all(u.stage == "selecting" for u in result.unscheduled_places)


def test_low_score_rejected(make_place):
    weak = make_place(wish_level=1, rating=1.0, stay=120, km_north=None)
    result = PlaceSelector(OptimizationSettings()).select([weak])
    assert result.scheduled_places == []
    assert result.unscheduled_places[0].reason == REASON_LOW_SCORE
    assert "most often due to low priority" in result.reason


def test_threshold_never_decreases(make_place):
    places = [make_place(wish_level=w, rating=r, km_north=float(k))
              for k, (w, r) in enumerate([(5, 5), (4, 4), (4, 5), (3, 4), (5, 3), (2, 5), (3, 3)])]
    result = PlaceSelector(OptimizationSettings()).select(places, ANCHOR)
    assert len(result.thresholds) == len(places)
    assert result.thresholds[0] == pytest.approx(0.5)
    assert all(b >= a for a, b in zip(result.thresholds, result.thresholds[1:]))


def test_selection_is_deterministic_and_stable(make_place):
    twins = [make_place(wish_level=4, rating=4.0, km_north=None, place_id=pid)
             for pid in ("x", "y", "z")]
    selector = PlaceSelector(OptimizationSettings())
    first = selector.select(twins)
    second = selector.select(twins)
    assert _ids(first.scheduled_places) == _ids(second.scheduled_places)
    assert [sp.score for sp in first.scheduled_places] == [sp.score for sp in second.scheduled_places]
    ranked = PlaceScorer().score_all(twins)
    assert [sp.place.id for sp in ranked] == ["x", "y", "z"]


def test_empty_candidate_list_is_not_an_error():
    result = PlaceSelector(OptimizationSettings()).select([])
    assert result.scheduled_places == []
    assert result.unscheduled_places == []
    assert result.reason


def test_prioritize_must_visit_reserves_capacity(make_place):
    favourite = make_place(wish_level=4, rating=5.0, stay=60, km_north=0.0, place_id="favourite")
    must = make_place(wish_level=5, rating=0.0, stay=60, km_north=None, place_id="must")

    capacity_first = PlaceSelector(OptimizationSettings(max_places_per_day=1))
    assert _ids(capacity_first.select([favourite, must], ANCHOR).scheduled_places) == ["favourite"]

    must_first = PlaceSelector(OptimizationSettings(max_places_per_day=1, prioritize_must_visit=True))
    assert _ids(must_first.select([favourite, must], ANCHOR).scheduled_places) == ["must"]


def test_multi_day_buckets(make_place):
    places = [make_place(wish_level=5, rating=5.0, place_id=pid) for pid in ("a", "b", "c")]
    selector = PlaceSelector(OptimizationSettings(max_places_per_day=1), num_days=2)
    result = selector.select(places, ANCHOR)
    assert [(sp.place.id, sp.day_index) for sp in result.scheduled_places] == [("a", 0), ("b", 1)]
    assert result.unscheduled_places[0].reason == REASON_PLACE_LIMIT


def test_reason_summarizes_selection(make_place):
    places = [
        make_place(wish_level=5, rating=4.5, stay=90),
        make_place(wish_level=4, rating=4.0, stay=90),
    ]
    result = PlaceSelector(OptimizationSettings()).select(places, ANCHOR)
    assert result.reason.startswith("Selected 2 of 2 places")
    assert "1 must-visit" in result.reason
    assert "2 highly rated" in result.reason
    assert "3.0h of visits" in result.reason
