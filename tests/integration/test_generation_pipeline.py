"""Integration tests running the selection engine across several generations."""

import random
from unittest.mock import Mock

import pytest

from pareto.dominance import dominates
from pareto.errors import MissingObjectiveError
from pareto.hypervolume import HypervolumeTracker
from pareto.interfaces import Candidate
from pareto_select.config import Config
from pareto_select.engine import SelectionEngine

OBJECTIVES = ("accuracy", "latency", "cost", "robustness")


def measured_population(generation, size=20, seed=0):
    """Candidates as an evaluation stage would report them"""
    rng = random.Random(seed * 1000 + generation)
    return [
        Candidate(
            id=f"g{generation}-{i}",
            objectives={
                "accuracy": rng.uniform(0.4, 1.0),
                "latency": rng.uniform(0.2, 3.0),
                "cost": rng.uniform(0.001, 0.1),
                "robustness": rng.uniform(0.3, 1.0),
            },
            generation=generation,
        )
        for i in range(size)
    ]


def small_config(**selection):
    config = Config()
    config.selection.population_size = 10
    config.frontier.max_frontier_size = 8
    config.frontier.archive_max_size = 12
    for key, value in selection.items():
        setattr(config.selection, key, value)
    return config


class TestGenerationPipeline:
    """End-to-end behavior of SelectionEngine.run_generation"""

    def test_multi_generation_invariants(self):
        """Frontier stays non-dominated and bounded while generations advance"""
        engine = SelectionEngine(small_config(), seed=7)
        frontier = engine.new_frontier()
        survivors = []

        for generation in range(1, 6):
            population = survivors + measured_population(generation)
            result = engine.run_generation(population, frontier)
            frontier = result.frontier

            assert result.generation == generation
            assert frontier.generation == generation
            assert 0 < len(frontier.solutions) <= 8
            assert len(frontier.archive) <= 12
            assert len(result.survivors) == 10
            assert len(result.parents) == 10
            assert result.hypervolume == frontier.hypervolume
            assert sorted(frontier.fronts[1]) == sorted(frontier.solutions)

            members = list(frontier.solutions.values())
            for a in members:
                for b in members:
                    if a.id != b.id:
                        assert not dominates(a, b, list(OBJECTIVES))

            ranked_ids = [cid for front in result.fronts for cid in front]
            assert sorted(ranked_ids) == sorted(c.id for c in population)
            if generation > 1:
                assert result.improvement_ratio is not None

            survivors = [
                Candidate(id=s.id, objectives=s.objectives, generation=s.generation)
                for s in result.survivors
            ]

    def test_survivors_prefer_first_front(self):
        """Environmental selection never admits rank r+1 while rank r is incomplete"""
        engine = SelectionEngine(small_config(), seed=1)
        result = engine.run_generation(measured_population(1, size=30))
        ranks = {c.id: c.pareto_rank for c in result.population}
        kept = [ranks[s.id] for s in result.survivors]
        worst_kept = max(kept)
        for cid, rank in ranks.items():
            if rank < worst_kept:
                assert cid in {s.id for s in result.survivors}

    def test_seed_reproducible(self):
        """Same seed and input give the same parents"""
        population = measured_population(1)
        first = SelectionEngine(small_config(), seed=42).run_generation(population)
        second = SelectionEngine(small_config(), seed=42).run_generation(population)
        assert [p.id for p in first.parents] == [p.id for p in second.parents]
        assert [s.id for s in first.survivors] == [s.id for s in second.survivors]

    def test_elite_survivor_strategy(self):
        """Elite survival keeps the whole first front when it fits"""
        engine = SelectionEngine(small_config(survivor_strategy="elite"), seed=3)
        result = engine.run_generation(measured_population(1))
        front = {c.id for c in result.population if c.pareto_rank == 1}
        survivor_ids = {s.id for s in result.survivors}
        assert len(result.survivors) == 10
        if len(front) <= 10:
            assert front <= survivor_ids

    def test_saturation(self):
        """Repeating the same population saturates the tracker"""
        config = small_config()
        config.frontier.max_frontier_size = 100
        engine = SelectionEngine(config, seed=2, tracker=HypervolumeTracker(patience=2))
        population = measured_population(1)
        frontier = None
        results = []
        for generation in range(1, 4):
            result = engine.run_generation(population, frontier, generation)
            frontier = result.frontier
            results.append(result)
        assert results[1].improvement_ratio == pytest.approx(0.0)
        assert [r.saturated for r in results] == [False, False, True]

    def test_sharing(self):
        """Plain sharing reports niche counts for every candidate"""
        config = small_config()
        config.sharing.enabled = True
        config.sharing.adaptive = False
        result = SelectionEngine(config, seed=5).run_generation(measured_population(1))
        assert result.sharing_applied
        assert set(result.niche_counts) == {c.id for c in result.population}
        assert all(count >= 1.0 for count in result.niche_counts.values())

    def test_empty_population(self):
        """An empty generation still reports the frontier's hypervolume"""
        engine = SelectionEngine(small_config())
        result = engine.run_generation([])
        assert result.population == []
        assert result.parents == []
        assert result.hypervolume == 0.0
        assert result.generation == 1


class TestEngineEvents:
    """Listener notifications"""

    def test_started_and_completed(self):
        engine = SelectionEngine(small_config(), seed=1)
        started, completed = Mock(), Mock()
        engine.add_event_listener("generation_started", started)
        engine.add_event_listener("generation_completed", completed)

        result = engine.run_generation(measured_population(1))

        started.assert_called_once_with({"generation": 1, "population_size": 20})
        completed.assert_called_once()
        assert completed.call_args[0][0]["result"] is result

    def test_failing_listener_does_not_abort(self):
        engine = SelectionEngine(small_config(), seed=1)
        engine.add_event_listener("generation_started", Mock(side_effect=RuntimeError("boom")))
        result = engine.run_generation(measured_population(1))
        assert result.survivors

    def test_failure_event(self):
        """Invalid input emits generation_failed and re-raises"""
        engine = SelectionEngine(small_config())
        failed = Mock()
        engine.add_event_listener("generation_failed", failed)
        population = measured_population(1)
        population.append(Candidate(id="broken", objectives={"accuracy": 0.5}))

        with pytest.raises(MissingObjectiveError):
            engine.run_generation(population)

        failed.assert_called_once()
        assert isinstance(failed.call_args[0][0]["error"], MissingObjectiveError)


def two_objective_config(archive_max_size=100):
    config = Config()
    config.objectives = {
        "accuracy": {"direction": "maximize", "weight": 1.0},
        "cost": {"direction": "minimize", "weight": 1.0},
    }
    config.selection.population_size = 6
    config.frontier.max_frontier_size = 100
    config.frontier.archive_max_size = archive_max_size
    return config


class TestCrossGenerationScale:
    """Carried frontier members and archive records share each generation's scale"""

    @pytest.mark.parametrize("seed", range(20))
    def test_frontier_growth_raises_hypervolume(self, seed):
        """A newcomer joining the frontier never reads as a hypervolume loss"""
        engine = SelectionEngine(two_objective_config(), seed=seed)
        rng = random.Random(seed)
        population = [
            Candidate(
                id=f"p{i}",
                objectives={
                    "accuracy": rng.uniform(0.2, 0.9),
                    "cost": rng.uniform(0.5, 3.0),
                },
            )
            for i in range(4)
        ]
        first = engine.run_generation(population)

        newcomer = Candidate(
            id="new", objectives={"accuracy": 1.2, "cost": 3.5}, generation=2
        )
        second = engine.run_generation(population + [newcomer], first.frontier)

        assert "new" in second.frontier.solutions
        assert second.improvement_ratio > 0
        assert engine.tracker.history[-1].absolute_improvement > 0

    def test_unchanged_frontier_reports_no_change(self):
        """Re-running a generation measures both frontiers on one reference point"""
        engine = SelectionEngine(two_objective_config(), seed=3)
        population = measured_population(1)
        population = [
            Candidate(
                id=c.id,
                objectives={k: c.objectives[k] for k in ("accuracy", "cost")},
            )
            for c in population
        ]
        first = engine.run_generation(population)
        extra = Candidate(id="weak", objectives={"accuracy": 0.0, "cost": 10.0})
        second = engine.run_generation(population + [extra], first.frontier)
        assert set(second.frontier.solutions) == set(first.frontier.solutions)
        assert second.improvement_ratio == pytest.approx(0.0, abs=1e-12)

    def test_archive_rescaled_with_population(self):
        """Archive records are ordered on the same scale as their raw values"""
        engine = SelectionEngine(two_objective_config(archive_max_size=3), seed=0)
        frontier = None
        for generation in range(1, 5):
            rng = random.Random(generation)
            population = [
                Candidate(
                    id=f"g{generation}c{i}",
                    objectives={
                        "accuracy": rng.uniform(0.1, 0.4) + 0.15 * generation,
                        "cost": rng.uniform(2.0, 3.5) - 0.4 * generation,
                    },
                    generation=generation,
                )
                for i in range(6)
            ]
            frontier = engine.run_generation(population, frontier, generation).frontier

        archive = list(frontier.archive)
        assert 0 < len(archive) <= 3
        for a in archive:
            for b in archive:
                scaled_a, scaled_b = a.normalized_objectives, b.normalized_objectives
                if a.objectives["accuracy"] > b.objectives["accuracy"]:
                    assert scaled_a["accuracy"] > scaled_b["accuracy"]
                if a.objectives["cost"] < b.objectives["cost"]:
                    assert scaled_a["cost"] > scaled_b["cost"]
            if a.id in frontier.solutions:
                member = frontier.solutions[a.id]
                assert a.normalized_objectives == member.normalized_objectives
