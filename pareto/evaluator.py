"""
Multi-objective evaluator for Pareto Select.
Normalizes raw objective measurements to [0, 1] (higher is better) and
computes a weighted aggregate fitness for single-objective consumers.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Sequence

from .errors import (
    InvalidConfigError,
    MissingAnnotationError,
    MissingObjectiveError,
    UnknownObjectiveError,
    ValidationError,
)
from .interfaces import (
    Candidate,
    ObjectiveDirection,
    ObjectiveSpec,
    PopulationStats,
    default_objective_spec,
    require_unique_ids,
)

logger = logging.getLogger(__name__)


@dataclass
class ObjectiveBreakdown:
    """How one objective contributed to a candidate's aggregate fitness"""

    raw: float
    normalized: float
    weight: float
    contribution: float
    direction: str


@dataclass
class FitnessExplanation:
    """Per-objective breakdown of an aggregate fitness value"""

    candidate_id: str
    aggregate_fitness: float
    objectives: Dict[str, ObjectiveBreakdown]


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class MultiObjectiveEvaluator:
    """
    Normalizes objective vectors against population statistics.
    Pure: every method is a function of its arguments and the objective spec.
    """

    def __init__(self, spec: Optional[ObjectiveSpec] = None):
        self.spec = spec or default_objective_spec()
        self._validate_spec(self.spec)

    @staticmethod
    def _validate_spec(spec: ObjectiveSpec) -> None:
        errors = []
        if len(spec) == 0:
            errors.append("at least one objective must be declared")
        seen = set()
        for objective in spec.objectives:
            if objective.name in seen:
                errors.append(f"objective '{objective.name}' declared twice")
            seen.add(objective.name)
            if objective.weight < 0 or math.isnan(objective.weight):
                errors.append(
                    f"weight for '{objective.name}' must be non-negative, "
                    f"got {objective.weight}"
                )
        if errors:
            raise InvalidConfigError(errors)

    def validate_candidate(self, candidate: Candidate) -> None:
        """Raise if the raw objective map does not match the declared spec."""
        for name in self.spec.names:
            if name not in candidate.objectives:
                raise MissingObjectiveError(candidate.id, name)
            value = candidate.objectives[name]
            if not isinstance(value, (int, float)) or math.isnan(value):
                raise ValidationError(
                    f"Candidate {candidate.id} has non-numeric value for '{name}'",
                    details={"candidate_id": candidate.id, "objective": name},
                )
        for name in candidate.objectives:
            if name not in self.spec:
                raise UnknownObjectiveError(candidate.id, name)

    def validate_population(self, population: Sequence[Candidate]) -> None:
        require_unique_ids(population)
        for candidate in population:
            self.validate_candidate(candidate)

    def population_stats(self, population: Sequence[Candidate]) -> PopulationStats:
        """Per-objective raw min/max over ``population``.

        Args:
            population: Candidates with complete raw objective maps

        Returns:
            PopulationStats; empty maps for an empty population
        """
        self.validate_population(population)
        mins: Dict[str, float] = {}
        maxs: Dict[str, float] = {}
        for name in self.spec.names:
            values = [float(c.objectives[name]) for c in population]
            if values:
                mins[name] = min(values)
                maxs[name] = max(values)
        return PopulationStats(mins=mins, maxs=maxs)

    def normalize(
        self, objectives: Mapping[str, float], stats: PopulationStats
    ) -> Dict[str, float]:
        """Map raw values into [0, 1] with higher always better.

        A zero-variance objective maps to 1.0 for every candidate.
        """
        normalized: Dict[str, float] = {}
        for objective in self.spec.objectives:
            name = objective.name
            low = stats.mins.get(name)
            high = stats.maxs.get(name)
            if low is None or high is None:
                raise ValidationError(
                    f"No population statistics for objective '{name}'",
                    details={"objective": name},
                )
            span = high - low
            if span <= 0:
                normalized[name] = 1.0
                continue
            value = (float(objectives[name]) - low) / span
            if objective.direction is ObjectiveDirection.MINIMIZE:
                value = 1.0 - value
            normalized[name] = _clamp(value)
        return normalized

    def aggregate_fitness(self, normalized: Mapping[str, float]) -> float:
        """Weighted sum of normalized objectives; never used for dominance."""
        return sum(o.weight * normalized[o.name] for o in self.spec.objectives)

    def evaluate(self, candidate: Candidate, stats: PopulationStats) -> Candidate:
        """Return ``candidate`` annotated with normalized values and fitness."""
        self.validate_candidate(candidate)
        normalized = self.normalize(candidate.objectives, stats)
        return replace(
            candidate,
            normalized_objectives=normalized,
            aggregate_fitness=self.aggregate_fitness(normalized),
        )

    def evaluate_population(self, population: Sequence[Candidate]) -> List[Candidate]:
        """Normalize a whole population against its own statistics.

        The population is validated in full before any candidate is annotated.
        """
        if not population:
            return []
        stats = self.population_stats(population)
        evaluated = [self.evaluate(c, stats) for c in population]
        logger.debug(f"Normalized {len(evaluated)} candidates")
        return evaluated

    def update_weights(self, weights: Mapping[str, float]) -> None:
        """Replace objective weights; unknown names and negative weights fail."""
        errors = []
        for name, weight in weights.items():
            if name not in self.spec:
                errors.append(f"unknown objective '{name}'")
            elif weight < 0:
                errors.append(f"weight for '{name}' must be non-negative, got {weight}")
        if errors:
            raise InvalidConfigError(errors)
        self.spec = self.spec.with_weights(weights)
        logger.info(f"Updated objective weights: {self.spec.weights}")

    def explain(self, candidate: Candidate) -> FitnessExplanation:
        """Break an evaluated candidate's aggregate fitness down by objective."""
        if candidate.normalized_objectives is None:
            raise MissingAnnotationError(candidate.id, "normalized_objectives")
        breakdown: Dict[str, ObjectiveBreakdown] = {}
        for objective in self.spec.objectives:
            normalized = candidate.normalized_objectives[objective.name]
            breakdown[objective.name] = ObjectiveBreakdown(
                raw=float(candidate.objectives[objective.name]),
                normalized=normalized,
                weight=objective.weight,
                contribution=objective.weight * normalized,
                direction=objective.direction.value,
            )
        return FitnessExplanation(
            candidate_id=candidate.id,
            aggregate_fitness=sum(b.contribution for b in breakdown.values()),
            objectives=breakdown,
        )
