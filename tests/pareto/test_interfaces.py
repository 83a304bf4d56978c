"""
Unit tests for the core data model.
Covers the symbolic infinite crowding distance, objective specs and
annotation validation.
"""

import copy
import pickle

import pytest

from pareto.errors import DuplicateCandidateError, MissingAnnotationError
from pareto.interfaces import (
    INFINITE,
    Candidate,
    InfiniteDistance,
    ObjectiveDirection,
    ObjectiveSpec,
    add_distance,
    default_objective_spec,
    descending_distance_key,
    is_infinite,
    objective_names,
    require_annotations,
    require_unique_ids,
)


class TestInfiniteDistance:
    """Test suite for the INFINITE sentinel"""

    def test_singleton(self):
        """Constructing the type again yields the same object"""
        assert InfiniteDistance() is INFINITE

    def test_orders_above_numbers(self):
        """INFINITE compares greater than any finite number"""
        assert INFINITE > 1e308
        assert 1e308 < INFINITE
        assert not INFINITE < 0.0
        assert INFINITE >= INFINITE
        assert INFINITE == INFINITE
        assert INFINITE != float("inf")

    def test_sorts_with_floats(self):
        """Mixed lists sort with INFINITE last"""
        assert sorted([3.0, INFINITE, 1.0]) == [1.0, 3.0, INFINITE]
        assert max([0.5, INFINITE, 2.0]) is INFINITE

    def test_refuses_arithmetic(self):
        """INFINITE never silently participates in sums"""
        with pytest.raises(TypeError):
            INFINITE + 1.0  # noqa: B018
        with pytest.raises(TypeError):
            sum([1.0, INFINITE])

    def test_add_distance_stays_infinite(self):
        """add_distance special-cases the sentinel"""
        assert add_distance(INFINITE, 0.5) is INFINITE
        assert add_distance(0.25, 0.5) == 0.75

    def test_pickle_and_copy_preserve_identity(self):
        """Round-trips keep the singleton"""
        assert pickle.loads(pickle.dumps(INFINITE)) is INFINITE
        assert copy.deepcopy(INFINITE) is INFINITE

    def test_descending_key(self):
        """Descending key puts infinite first, then larger distances"""
        values = [0.1, INFINITE, 0.9, 0.5]
        ordered = sorted(values, key=descending_distance_key)
        assert ordered == [INFINITE, 0.9, 0.5, 0.1]

    def test_is_infinite(self):
        """is_infinite only recognizes the sentinel"""
        assert is_infinite(INFINITE)
        assert not is_infinite(float("inf"))
        assert not is_infinite(None)


class TestObjectiveSpec:
    """Test suite for ObjectiveSpec"""

    def test_default_spec(self):
        """Defaults declare the four standard objectives"""
        spec = default_objective_spec()
        assert spec.names == ["accuracy", "latency", "cost", "robustness"]
        assert spec.get("latency").direction is ObjectiveDirection.MINIMIZE
        assert spec.weights == {
            "accuracy": 0.5,
            "latency": 0.2,
            "cost": 0.2,
            "robustness": 0.1,
        }

    def test_dict_round_trip(self):
        """to_dict and from_dict are inverses"""
        spec = default_objective_spec()
        assert ObjectiveSpec.from_dict(spec.to_dict()) == spec

    def test_from_dict_defaults(self):
        """Missing direction and weight fall back to maximize and 1.0"""
        spec = ObjectiveSpec.from_dict({"quality": {}})
        objective = spec.get("quality")
        assert objective.direction is ObjectiveDirection.MAXIMIZE
        assert objective.weight == 1.0

    def test_contains_and_with_weights(self):
        """Membership and weight replacement"""
        spec = default_objective_spec()
        assert "cost" in spec
        assert "speed" not in spec
        updated = spec.with_weights({"cost": 0.9})
        assert updated.get("cost").weight == 0.9
        assert spec.get("cost").weight == 0.2


class TestValidationHelpers:
    """Test suite for annotation and id validation"""

    def test_require_annotations(self):
        """Missing annotation is reported with candidate id"""
        candidates = [
            Candidate(id="a", objectives={"x": 1.0}, pareto_rank=1, crowding_distance=0.0),
            Candidate(id="b", objectives={"x": 1.0}, pareto_rank=1),
        ]
        with pytest.raises(MissingAnnotationError) as exc:
            require_annotations(candidates, "pareto_rank", "crowding_distance")
        assert exc.value.details == {
            "candidate_id": "b",
            "annotation": "crowding_distance",
        }

    def test_require_unique_ids(self):
        """Duplicate ids are rejected"""
        candidates = [Candidate(id="a", objectives={}), Candidate(id="a", objectives={})]
        with pytest.raises(DuplicateCandidateError):
            require_unique_ids(candidates)

    def test_objective_names_checks_every_candidate(self):
        """Every candidate must carry the first candidate's objectives"""
        candidates = [
            Candidate(id="a", objectives={}, normalized_objectives={"x": 1.0, "y": 0.0}),
            Candidate(id="b", objectives={}, normalized_objectives={"x": 0.5}),
        ]
        with pytest.raises(MissingAnnotationError):
            objective_names(candidates)

    def test_objective_names_empty(self):
        """Empty population has no objectives"""
        assert objective_names([]) == []
