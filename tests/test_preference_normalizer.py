import math

import pytest

from tripopt.modules.planning.preference_normalizer import group_fairness, normalize_preferences
from tripopt.modules.resilience.error_classifier import OptimizationInputError
from tripopt.schemas.trip import Member


def test_rescales_each_member_against_own_range(make_place):
    places = [
        make_place(wish_level=1, owner="alice", place_id="a1"),
        make_place(wish_level=3, owner="alice", place_id="a2"),
        make_place(wish_level=5, owner="alice", place_id="a3"),
    ]
    result = normalize_preferences(places, [Member("alice")])

    alice = result.members["alice"]
    assert alice.normalized["a1"] == pytest.approx(0.1)
    assert alice.normalized["a2"] == pytest.approx(0.55)
    assert alice.normalized["a3"] == pytest.approx(1.0)
    assert alice.contribution == pytest.approx(1.65 * math.sqrt(1 / 3))
    assert result.fairness_score == 1.0
    assert result.total_places == 3


def test_generous_rater_does_not_dominate(make_place):
    places = [
        make_place(wish_level=5, owner="alice", place_id="a1"),
        make_place(wish_level=4, owner="alice", place_id="a2"),
        make_place(wish_level=2, owner="bob", place_id="b1"),
        make_place(wish_level=1, owner="bob", place_id="b2"),
    ]
    result = normalize_preferences(places, [Member("alice"), Member("bob")])

    assert result.normalized_score("alice", "a1") == pytest.approx(1.0)
    assert result.normalized_score("bob", "b1") == pytest.approx(1.0)
    assert result.members["alice"].contribution == pytest.approx(result.members["bob"].contribution)
    assert result.fairness_score == pytest.approx(1.0)


def test_uniform_wishes_are_flagged(make_place):
    places = [
        make_place(wish_level=4, owner="bob", place_id="b1"),
        make_place(wish_level=4, owner="bob", place_id="b2"),
    ]
    result = normalize_preferences(places, [Member("bob")])
    assert result.members["bob"].normalized == {"b1": 1.0, "b2": 1.0}
    assert "user_bob_uniform_wish_levels" in result.edge_cases


def test_unbalanced_contributions_lower_fairness(make_place):
    places = [make_place(owner="alice", wish_level=w) for w in (1, 2, 3, 4, 5)]
    places.append(make_place(owner="bob", wish_level=3))
    result = normalize_preferences(places, [Member("alice"), Member("bob")])
    assert 0.0 < result.fairness_score < 1.0


def test_group_fairness_formula():
    assert group_fairness([]) == 1.0
    assert group_fairness([2.0]) == 1.0
    assert group_fairness([1.0, 1.0, 1.0]) == pytest.approx(1.0)
    # ratios 0.5 / 1.5 -> variance 0.25
    assert group_fairness([1.0, 3.0]) == pytest.approx(math.exp(-1.25))


def test_ineligible_members_are_not_measured(make_place):
    places = [
        make_place(owner="alice", place_id="a1"),
        make_place(owner="guest", place_id="g1"),
    ]
    members = [Member("alice"), Member("guest", can_optimize=False), Member("carol")]
    result = normalize_preferences(places, members)
    assert set(result.members) == {"alice"}
    assert "user_guest_not_eligible" in result.edge_cases
    assert "user_carol_no_places" in result.edge_cases
    assert result.total_places == 2


def test_empty_inputs_raise_validation_errors(make_place):
    with pytest.raises(OptimizationInputError) as info:
        normalize_preferences([], [Member("alice")])
    assert info.value.code == "EMPTY_TRIP"

    with pytest.raises(OptimizationInputError) as info:
        normalize_preferences([make_place()], [])
    assert info.value.code == "NO_MEMBERS"
