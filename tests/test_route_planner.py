import logging
from unittest.mock import MagicMock

import pytest

from adaptive_planner.exceptions import ProviderUnavailable
from adaptive_planner.modules.planning.route_planner import (
    RoutePlanner,
    is_valid_matrix,
    optimize_order,
)
from adaptive_planner.schemas.itinerary import LatLng


@pytest.fixture
def abc(make_stop):
    return [make_stop("A", 0.0, 0.0), make_stop("B", 0.0, 0.1), make_stop("C", 0.0, 0.01)]


# start, A, B, C
START_MATRIX = [
    [0, 300, 200, 100],
    [300, 0, 60, 50],
    [200, 60, 0, 400],
    [100, 50, 400, 0],
]

FOUR_STOP_MATRIX = [
    [0, 1, 50, 10],
    [1, 0, 1, 1],
    [50, 1, 0, 20],
    [10, 1, 20, 0],
]


def names(stops):
    return [s.place.name for s in stops]


# ── optimize_order ────────────────────────────────────────────────────────────

def test_nearest_neighbor_from_first_stop(abc):
    matrix = [[0, 100, 10], [100, 0, 50], [10, 50, 0]]
    assert names(optimize_order(abc, matrix)) == ["A", "C", "B"]


def test_nearest_neighbor_from_start_location(abc):
    assert names(optimize_order(abc, START_MATRIX, offset=1)) == ["C", "A", "B"]


def test_ties_keep_list_order(abc):
    zeros = [[0] * 3 for _ in range(3)]
    assert names(optimize_order(abc, zeros)) == ["A", "B", "C"]


def test_locked_stop_keeps_its_index(make_stop):
    stops = [make_stop("A"), make_stop("B", locked=True), make_stop("C"), make_stop("D")]
    assert names(optimize_order(stops, FOUR_STOP_MATRIX)) == ["A", "B", "D", "C"]


@pytest.mark.parametrize("locked_pos", [0, 1, 2, 3])
def test_locked_positions_survive_any_matrix(make_stop, locked_pos):
    stops = [make_stop(n, locked=(i == locked_pos)) for i, n in enumerate("ABCD")]
    result = optimize_order(stops, FOUR_STOP_MATRIX)
    assert result[locked_pos] is stops[locked_pos]
    assert sorted(names(result)) == ["A", "B", "C", "D"]


def test_all_locked_is_identity(make_stop):
    stops = [make_stop(n, locked=True) for n in "ABCD"]
    assert optimize_order(stops, FOUR_STOP_MATRIX) == stops


def test_input_is_not_mutated(abc):
    before = list(abc)
    optimize_order(abc, [[0, 100, 10], [100, 0, 50], [10, 50, 0]])
    assert abc == before


def test_single_stop_unchanged(make_stop):
    only = [make_stop("A")]
    assert optimize_order(only, None) == only


def test_missing_matrix_keeps_order_and_warns(abc, caplog):
    with caplog.at_level(logging.WARNING):
        assert optimize_order(abc, None) == abc
    assert "No distance matrix available" in caplog.text


def test_malformed_matrix_keeps_order(abc, caplog):
    with caplog.at_level(logging.WARNING):
        assert optimize_order(abc, [[0, 1], [1, 0]]) == abc
    assert "Malformed distance matrix" in caplog.text


@pytest.mark.parametrize("matrix, size, ok", [
    ([[0, 1], [1, 0]], 2, True),
    ([[0.0, 12.5], [3, 0]], 2, True),
    ([[0, 1], [1, 0]], 3, False),
    ([[0, 1], [1]], 2, False),
    ([[0, -1], [1, 0]], 2, False),
    ([[0, float("nan")], [1, 0]], 2, False),
    ([[0, None], [1, 0]], 2, False),
    ([[0, True], [1, 0]], 2, False),
    ("not a matrix", 2, False),
])
def test_is_valid_matrix(matrix, size, ok):
    assert is_valid_matrix(matrix, size) is ok


# ── RoutePlanner ──────────────────────────────────────────────────────────────

def test_planner_uses_provider_matrix(abc):
    start = LatLng(0.0, 0.02)
    provider = MagicMock(return_value=START_MATRIX)

    plan = RoutePlanner(provider).plan(abc, "driving", start_location=start)

    coords, profile = provider.call_args.args
    assert coords == [start, LatLng(0.0, 0.0), LatLng(0.0, 0.1), LatLng(0.0, 0.01)]
    assert profile == "mapbox/driving-traffic"
    assert names(plan.ordered) == ["C", "A", "B"]
    assert plan.optimized
    assert plan.offset == 1
    assert plan.matrix_index == {"act_a": 1, "act_b": 2, "act_c": 3}


def test_planner_falls_back_when_provider_fails(abc, caplog):
    provider = MagicMock(side_effect=ProviderUnavailable("Mapbox access token is required"))

    with caplog.at_level(logging.WARNING):
        plan = RoutePlanner(provider).plan(abc, "driving")

    assert plan.ordered == abc
    assert plan.matrix is None
    assert not plan.optimized
    assert "falling back to original order" in caplog.text


def test_planner_ignores_malformed_provider_result(abc):
    provider = MagicMock(return_value=[[0, 1], [1, 0]])
    plan = RoutePlanner(provider).plan(abc, "walking")
    assert plan.ordered == abc
    assert plan.matrix is None


def test_planner_without_provider_keeps_order(abc):
    plan = RoutePlanner().plan(abc)
    assert plan.ordered == abc
    assert not plan.optimized


def test_planner_skips_provider_when_not_optimizing(abc):
    provider = MagicMock()
    plan = RoutePlanner(provider).plan(abc, optimize=False)
    provider.assert_not_called()
    assert plan.ordered == abc
