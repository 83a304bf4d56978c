"""
Unit tests for EliteSelector.
"""

import pytest

from pareto.dominance import assign_ranks_and_crowding
from pareto.errors import InvalidConfigError, MissingAnnotationError, ValidationError
from pareto.interfaces import INFINITE, Candidate
from selection.elite import EliteConfig, EliteSelector, elite_key


def point(cid, x, y, rank=None, distance=None, generation=0):
    values = {"x": x, "y": y}
    return Candidate(
        id=cid,
        objectives=dict(values),
        normalized_objectives=values,
        pareto_rank=rank,
        crowding_distance=distance,
        generation=generation,
    )


class TestEliteCount:
    """Test suite for elite_count_for"""

    def test_ratio(self):
        """Count follows elite_ratio"""
        assert EliteSelector().elite_count_for(20) == 3

    def test_minimum(self):
        """Small populations still keep min_elites"""
        assert EliteSelector().elite_count_for(3) == 1

    def test_explicit_count_capped(self):
        """Requests above the population size are capped"""
        assert EliteSelector().elite_count_for(10, 50) == 10

    def test_configured_count(self):
        """A configured elite_count overrides the ratio"""
        assert EliteSelector(EliteConfig(elite_count=4)).elite_count_for(100) == 4

    def test_negative_count(self):
        """Negative counts are rejected"""
        with pytest.raises(ValidationError):
            EliteSelector().elite_count_for(10, -2)


class TestSelectElites:
    """Test suite for select_elites"""

    def test_order(self):
        """Rank, then distance, then older generation, then id"""
        population = [
            point("a", 0, 0, rank=2, distance=INFINITE),
            point("b", 0, 0, rank=1, distance=0.5, generation=3),
            point("c", 0, 0, rank=1, distance=0.5, generation=1),
            point("d", 0, 0, rank=1, distance=INFINITE, generation=5),
        ]
        elites = EliteSelector().select_elites(population, 3)
        assert [e.id for e in elites] == ["d", "c", "b"]

    def test_elites_unmodified(self):
        """Elites are the very same records"""
        population = [point("a", 0.1, 0.9, rank=1, distance=INFINITE)]
        assert EliteSelector().select_elites(population, 1)[0] is population[0]

    def test_requires_annotations(self):
        """Missing rank is rejected"""
        with pytest.raises(MissingAnnotationError):
            EliteSelector().select_elites([point("a", 0, 0)], 1)

    def test_empty(self):
        """Empty population gives no elites"""
        assert EliteSelector().select_elites([]) == []

    def test_elite_key_ties(self):
        """Identical annotations fall back to id"""
        a = point("a", 0, 0, rank=1, distance=0.2)
        b = point("b", 0, 0, rank=1, distance=0.2)
        assert sorted([b, a], key=elite_key) == [a, b]


class TestFrontierPreserving:
    """Test suite for select_frontier_preserving"""

    def test_whole_front_kept_when_it_fits(self):
        """A small first front survives entirely; the rest fill by elite order"""
        population = assign_ranks_and_crowding(
            [
                point("a", 1.0, 0.2),
                point("b", 0.2, 1.0),
                point("c", 0.9, 0.1),
                point("d", 0.1, 0.9),
                point("e", 0.05, 0.05),
            ]
        )
        elites = EliteSelector().select_frontier_preserving(population, 3)
        assert [e.id for e in elites][:2] == ["a", "b"]
        assert elites[2].id == "c"

    def test_diverse_subset_when_front_too_large(self):
        """The near-duplicate of an already chosen point is passed over"""
        population = assign_ranks_and_crowding(
            [
                point("p0", 0.0, 1.0),
                point("p1", 1.0, 0.0),
                point("p2", 0.5, 0.5),
                point("p3", 0.5005, 0.4995),
                point("p4", 0.3, 0.7),
                point("p5", 0.7, 0.3),
            ]
        )
        assert all(c.pareto_rank == 1 for c in population)
        elites = EliteSelector().select_frontier_preserving(population, 3)
        assert {e.id for e in elites} == {"p0", "p1", "p2"}

    def test_default_count(self):
        """Without a count the configured ratio applies"""
        population = assign_ranks_and_crowding(
            [point(f"c{i}", i / 10, 1 - i / 10) for i in range(10)]
        )
        elites = EliteSelector(EliteConfig(elite_ratio=0.3)).select_frontier_preserving(
            population
        )
        assert len(elites) == 3
        assert {"c0", "c9"} <= {e.id for e in elites}

    def test_requires_normalized(self):
        """Normalized objectives are needed for spreading"""
        candidate = Candidate(id="a", objectives={}, pareto_rank=1, crowding_distance=0.1)
        with pytest.raises(MissingAnnotationError):
            EliteSelector().select_frontier_preserving([candidate], 1)


class TestDiverseElites:
    """Test suite for select_diverse_elites"""

    @pytest.fixture
    def population(self):
        return [
            point("d1", 0.5, 0.5, rank=1, distance=INFINITE),
            point("d2", 0.5, 0.5005, rank=1, distance=INFINITE),
            point("e", 0.2, 0.2, rank=2, distance=0.5),
        ]

    def test_skips_near_duplicates(self, population):
        """A candidate within the similarity threshold of an elite is skipped"""
        elites = EliteSelector().select_diverse_elites(population, 2)
        assert [e.id for e in elites] == ["d1", "e"]

    def test_fills_from_skipped(self, population):
        """Skipped candidates fill any remaining slots"""
        elites = EliteSelector().select_diverse_elites(population, 3)
        assert [e.id for e in elites] == ["d1", "e", "d2"]

    def test_zero_threshold_keeps_order(self, population):
        """A zero threshold treats every candidate as distinct"""
        elites = EliteSelector().select_diverse_elites(
            population, 2, similarity_threshold=0.0
        )
        assert [e.id for e in elites] == ["d1", "d2"]


class TestParetoFront:
    """Test suite for select_pareto_front"""

    def test_rank_one_only(self):
        """Only rank-1 candidates are returned"""
        population = [
            point("a", 0, 0, rank=1, distance=INFINITE),
            point("b", 0, 0, rank=2, distance=INFINITE),
        ]
        assert [c.id for c in EliteSelector.select_pareto_front(population)] == ["a"]


class TestEliteConfig:
    """Test suite for EliteConfig validation"""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"elite_ratio": -0.1},
            {"elite_ratio": 1.5},
            {"elite_count": -1},
            {"min_elites": -1},
            {"similarity_threshold": -0.5},
        ],
    )
    def test_invalid(self, kwargs):
        """Invalid settings are rejected at construction"""
        with pytest.raises(InvalidConfigError):
            EliteSelector(EliteConfig(**kwargs))
