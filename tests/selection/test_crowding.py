"""
Unit tests for crowding-distance survivor selection.
"""

import pytest

from pareto.errors import DuplicateCandidateError, MissingAnnotationError, ValidationError
from pareto.interfaces import INFINITE, Candidate, is_infinite
from selection.crowding import (
    assign_crowding_distances,
    environmental_selection,
    identify_boundary_solutions,
    select_by_crowding_distance,
)


def point(cid, x, y, rank=None, distance=None):
    values = {"x": x, "y": y}
    return Candidate(
        id=cid,
        objectives=dict(values),
        normalized_objectives=values,
        pareto_rank=rank,
        crowding_distance=distance,
    )


@pytest.fixture
def two_fronts():
    """First front a, b, m; each member of the second front is dominated by one of them."""
    return [
        point("c", 0.9, 0.1),
        point("a", 1.0, 0.2),
        point("e", 0.6, 0.6),
        point("b", 0.2, 1.0),
        point("d", 0.1, 0.9),
        point("m", 0.7, 0.7),
    ]


class TestEnvironmentalSelection:
    """Test suite for environmental_selection"""

    def test_whole_first_front_fits(self, two_fronts):
        """A target equal to the first front keeps exactly that front"""
        survivors = environmental_selection(two_fronts, 3)
        assert {s.id for s in survivors} == {"a", "b", "m"}
        assert all(s.pareto_rank == 1 for s in survivors)

    def test_partial_front_prefers_boundaries(self, two_fronts):
        """Truncation favors infinite distance; ties go to the smaller id"""
        survivors = environmental_selection(two_fronts, 4)
        assert {s.id for s in survivors} == {"a", "b", "m", "c"}

        survivors = environmental_selection(two_fronts, 5)
        assert {s.id for s in survivors} == {"a", "b", "m", "c", "d"}

    def test_interior_distance(self, two_fronts):
        """Interior members sum normalized neighbor gaps over objectives"""
        survivors = {s.id: s for s in environmental_selection(two_fronts, 6)}
        assert survivors["e"].crowding_distance == pytest.approx(2.0)
        assert survivors["m"].crowding_distance == pytest.approx(2.0)
        assert is_infinite(survivors["c"].crowding_distance)

    def test_target_larger_than_population(self, two_fronts):
        """Everyone survives when there is room"""
        assert len(environmental_selection(two_fronts, 20)) == 6

    def test_zero_target(self, two_fronts):
        """A zero target keeps nobody"""
        assert environmental_selection(two_fronts, 0) == []

    def test_negative_target(self, two_fronts):
        """Negative targets are rejected"""
        with pytest.raises(ValidationError):
            environmental_selection(two_fronts, -1)

    def test_empty_population(self):
        """Empty input gives empty output"""
        assert environmental_selection([], 5) == []

    def test_duplicate_ids_rejected(self):
        """Ids must be unique within a population"""
        with pytest.raises(DuplicateCandidateError):
            environmental_selection([point("a", 0.1, 0.2), point("a", 0.3, 0.4)], 1)

    def test_truncation_by_finite_distance(self):
        """Among interior members the more isolated one survives"""
        front = [
            point("p0", 0.0, 1.0),
            point("p1", 0.1, 0.9),
            point("p2", 0.5, 0.5),
            point("p3", 0.9, 0.1),
            point("p4", 1.0, 0.0),
        ]
        survivors = environmental_selection(front, 3)
        assert {s.id for s in survivors} == {"p0", "p4", "p2"}

    def test_epsilon_merges_near_ties(self):
        """With epsilon, a barely-dominated candidate joins the first front"""
        population = [point("a", 0.5, 0.5), point("b", 0.49, 0.49), point("c", 0.1, 0.1)]
        plain = {s.id: s.pareto_rank for s in environmental_selection(population, 3)}
        relaxed = {
            s.id: s.pareto_rank
            for s in environmental_selection(population, 3, epsilon=0.05)
        }
        assert plain == {"a": 1, "b": 2, "c": 3}
        assert relaxed["a"] == relaxed["b"] == 1
        assert relaxed["c"] == 2


class TestSelectByCrowdingDistance:
    """Test suite for select_by_crowding_distance"""

    def test_orders_by_rank_then_distance(self):
        """Existing annotations are used as given"""
        population = [
            point("a", 0, 0, rank=2, distance=INFINITE),
            point("b", 0, 0, rank=1, distance=0.3),
            point("c", 0, 0, rank=1, distance=INFINITE),
            point("d", 0, 0, rank=1, distance=0.7),
        ]
        assert [c.id for c in select_by_crowding_distance(population, 3)] == ["c", "d", "b"]

    def test_requires_annotations(self):
        """Unranked candidates are rejected"""
        with pytest.raises(MissingAnnotationError):
            select_by_crowding_distance([point("a", 0, 0)], 1)

    def test_empty(self):
        """Empty input gives empty output"""
        assert select_by_crowding_distance([], 3) == []


class TestAssignCrowdingDistances:
    """Test suite for assign_crowding_distances"""

    def test_flattened_front_order(self, two_fronts):
        """Output lists the first front before the second"""
        ranked = assign_crowding_distances(two_fronts)
        assert [c.pareto_rank for c in ranked] == [1, 1, 1, 2, 2, 2]
        assert all(c.crowding_distance is not None for c in ranked)


class TestBoundarySolutions:
    """Test suite for identify_boundary_solutions"""

    def test_extremes_per_objective(self, two_fronts):
        """Minimum and maximum holders of every objective are boundary"""
        assert set(identify_boundary_solutions(two_fronts)) == {"a", "b", "d", "c"}

    def test_empty(self):
        """No candidates, no boundary"""
        assert identify_boundary_solutions([]) == []
