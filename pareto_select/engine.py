"""
Selection engine for Pareto Select.
Runs the per-generation pipeline: normalize, rank and crowd, update the
frontier, measure hypervolume, optionally share fitness, then choose parents
and survivors.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from pareto.evaluator import MultiObjectiveEvaluator
from pareto.frontier import FrontierManager
from pareto.hypervolume import HypervolumeTracker, improvement_ratio
from pareto.interfaces import Candidate, Frontier, require_unique_ids
from selection.crowding import environmental_selection
from selection.elite import EliteSelector
from selection.sharing import FitnessSharing
from selection.tournament import TournamentSelector

from .config import Config
from .logging_config import SelectionLogger

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of one generation's selection pass"""

    generation: int
    population: List[Candidate]
    fronts: List[List[str]]
    parents: List[Candidate]
    survivors: List[Candidate]
    elites: List[Candidate]
    frontier: Frontier
    hypervolume: float
    improvement_ratio: Optional[float] = None
    saturated: bool = False
    sharing_applied: bool = False
    duration_ms: int = 0
    niche_counts: Dict[str, float] = field(default_factory=dict)


class SelectionEngine:
    """
    Per-generation multi-objective selection.

    The caller owns the Frontier between generations; each run returns the
    updated Frontier inside the GenerationResult. The engine keeps only the
    hypervolume history used for saturation detection.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        seed: Optional[int] = None,
        tracker: Optional[HypervolumeTracker] = None,
    ):
        self.config = config or Config()
        self.config.validate()
        if seed is None:
            seed = self.config.selection.seed

        frontier_cfg = self.config.frontier
        self.evaluator = MultiObjectiveEvaluator(self.config.objective_spec())
        self.frontier_manager = FrontierManager(
            max_size=frontier_cfg.max_frontier_size,
            archive_max_size=frontier_cfg.archive_max_size,
            reference_point=frontier_cfg.reference_point,
            reference_margin=frontier_cfg.auto_reference_margin,
            epsilon=frontier_cfg.epsilon,
        )
        self.tournament = TournamentSelector(self.config.tournament_config(), seed=seed)
        self.elite_selector = EliteSelector(self.config.elite_config())
        self.sharing = FitnessSharing(self.config.sharing_config(), seed=seed)
        self.tracker = tracker or HypervolumeTracker()

        self.selection_logger = SelectionLogger("pareto_select.engine")
        self.event_listeners: List[Any] = []

    def new_frontier(self) -> Frontier:
        return self.frontier_manager.new()

    def rank(self, population: Sequence[Candidate]) -> List[Candidate]:
        """Normalize, rank and crowd a population, preserving input order."""
        evaluated = self.evaluator.evaluate_population(population)
        _, ranked = self.frontier_manager.update_fronts(self.new_frontier(), evaluated)
        return ranked

    def _normalize_with_frontier(
        self, population: Sequence[Candidate], frontier: Frontier
    ):
        """Normalize the population, the frontier and its archive on shared statistics.

        Frontier members and archive records carried over from earlier
        generations are re-scaled so dominance between old and new solutions
        is judged on one scale.
        """
        self.evaluator.validate_population(population)
        seen = {c.id for c in population}
        carried = []
        for c in list(frontier.solutions.values()) + list(frontier.archive):
            if c.id not in seen:
                seen.add(c.id)
                carried.append(c)
        stats = self.evaluator.population_stats(list(population) + carried)
        evaluated = [self.evaluator.evaluate(c, stats) for c in population]
        solutions = {
            sid: self.evaluator.evaluate(c, stats) for sid, c in frontier.solutions.items()
        }
        archive = tuple(self.evaluator.evaluate(c, stats) for c in frontier.archive)
        return evaluated, replace(
            frontier, solutions=solutions, archive=archive, hypervolume=None
        )

    def run_generation(
        self,
        population: Sequence[Candidate],
        frontier: Optional[Frontier] = None,
        generation: Optional[int] = None,
    ) -> GenerationResult:
        """Run the full selection pipeline for one generation.

        Args:
            population: Measured candidates (merged parents and offspring)
            frontier: Frontier from the previous generation; a new one if None
            generation: Generation number; defaults to the frontier's plus one

        Returns:
            GenerationResult with ranked population, parents, survivors,
            elites and the updated frontier
        """
        if frontier is None:
            frontier = self.new_frontier()
        if generation is None:
            generation = frontier.generation + 1
        start = time.perf_counter()
        self.selection_logger.set_context(generation=generation)
        self.selection_logger.generation_start(generation, len(population))
        self._emit_event(
            "generation_started",
            {"generation": generation, "population_size": len(population)},
        )

        try:
            result = self._run(population, frontier, generation)
        except Exception as e:
            logger.error(f"Selection failed for generation {generation}: {e}")
            self._emit_event("generation_failed", {"generation": generation, "error": e})
            raise
        finally:
            self.selection_logger.clear_context()

        result.duration_ms = int((time.perf_counter() - start) * 1000)
        self.selection_logger.generation_complete(
            generation, result.hypervolume, len(result.fronts), result.duration_ms
        )
        self._emit_event("generation_completed", {"generation": generation, "result": result})
        return result

    def _run(
        self, population: Sequence[Candidate], frontier: Frontier, generation: int
    ) -> GenerationResult:
        settings = self.config.selection
        manager = self.frontier_manager

        if not population:
            frontier = manager.compute_hypervolume(replace(frontier, generation=generation))
            return GenerationResult(
                generation=generation,
                population=[],
                fronts=[],
                parents=[],
                survivors=[],
                elites=[],
                frontier=frontier,
                hypervolume=frontier.hypervolume or 0.0,
            )

        require_unique_ids(population)
        evaluated, frontier = self._normalize_with_frontier(population, frontier)
        previous_members = list(frontier.solutions.values())

        frontier, ranked = manager.update_fronts(frontier, evaluated)
        front_ids = [
            list(frontier.fronts[rank]) for rank in sorted(frontier.fronts)
        ]
        self.selection_logger.fronts_ranked(
            generation, len(front_ids), [len(f) for f in front_ids]
        )

        first_front = [c for c in ranked if c.pareto_rank == 1]
        frontier = manager.add_solutions(frontier, first_front, generation=generation)
        admitted = [c for c in first_front if c.id in frontier.solutions]
        frontier = manager.archive_solutions(frontier, admitted)
        self.selection_logger.frontier_updated(
            generation, len(frontier.solutions), len(frontier.archive)
        )

        frontier = manager.compute_hypervolume(frontier, evaluated + previous_members)
        hypervolume = frontier.hypervolume or 0.0
        previous: Optional[float] = None
        if previous_members:
            previous = manager.calculator.calculate(
                previous_members, frontier.reference_point
            )
        elif self.tracker.current is not None:
            previous = 0.0
        ratio = improvement_ratio(hypervolume, previous) if previous is not None else None
        saturated = self.tracker.update(hypervolume, generation, previous=previous)
        if saturated:
            self.selection_logger.hypervolume_saturated(generation, hypervolume)

        sharing_applied = False
        niche_counts: Dict[str, float] = {}
        if self.config.sharing.enabled:
            if self.config.sharing.adaptive:
                outcome = self.sharing.adaptive_apply_sharing(ranked)
            else:
                outcome = self.sharing.apply_sharing(ranked)
            ranked = outcome.population
            sharing_applied = outcome.applied
            niche_counts = outcome.niche_counts
            if outcome.applied and outcome.niche_radius is not None:
                self.selection_logger.sharing_applied(generation, outcome.niche_radius)

        parent_count = (
            settings.parent_count
            if settings.parent_count is not None
            else settings.population_size
        )
        parents = self.tournament.select(ranked, parent_count)
        self.selection_logger.parents_selected(generation, len(parents))

        elites = self.elite_selector.select_frontier_preserving(ranked)
        if settings.survivor_strategy == "elite":
            survivors = self.elite_selector.select_frontier_preserving(
                ranked, settings.population_size
            )
        else:
            survivors = environmental_selection(
                ranked, settings.population_size, self.config.frontier.epsilon
            )
        self.selection_logger.survivors_selected(
            generation, len(survivors), settings.survivor_strategy
        )

        return GenerationResult(
            generation=generation,
            population=ranked,
            fronts=front_ids,
            parents=parents,
            survivors=survivors,
            elites=elites,
            frontier=frontier,
            hypervolume=hypervolume,
            improvement_ratio=ratio,
            saturated=saturated,
            sharing_applied=sharing_applied,
            niche_counts=niche_counts,
        )

    def add_event_listener(self, event_type: str, callback: Callable):
        """Add event listener for selection events"""
        self.event_listeners.append((event_type, callback))

    def _emit_event(self, event_type: str, data: Dict[str, Any]):
        """Emit event to all registered listeners"""
        for listener_type, callback in self.event_listeners:
            if listener_type == event_type:
                try:
                    callback(data)
                except Exception as e:
                    logger.error(f"Event listener error: {e}")
