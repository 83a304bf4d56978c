"""
Fitness sharing for Pareto Select.
Divides each candidate's aggregate fitness by its niche count so that crowded
regions of objective space lose their advantage over isolated candidates.
"""

import logging
import math
import random
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence

from pareto.errors import InvalidConfigError
from pareto.interfaces import (
    DEFAULT_NICHE_RADIUS,
    DEFAULT_SHARING_ALPHA,
    Candidate,
    is_infinite,
    objective_names,
    require_annotations,
)

logger = logging.getLogger(__name__)


class NicheRadiusStrategy(Enum):
    """How the niche radius is derived."""

    FIXED = "fixed"
    POPULATION_BASED = "population_based"
    OBJECTIVE_RANGE = "objective_range"
    ADAPTIVE = "adaptive"


class DiversityMetric(Enum):
    """Measure used by adaptive sharing to decide whether to share."""

    CROWDING = "crowding"
    PAIRWISE_DISTANCE = "pairwise_distance"


@dataclass
class SharingConfig:
    """Configuration for fitness sharing"""

    strategy: NicheRadiusStrategy = NicheRadiusStrategy.OBJECTIVE_RANGE
    niche_radius: float = DEFAULT_NICHE_RADIUS
    sharing_alpha: float = DEFAULT_SHARING_ALPHA
    radius_fraction: float = 0.1
    base_radius: float = 0.3
    target_diversity: float = 0.3
    diversity_threshold: float = 0.3
    diversity_metric: DiversityMetric = DiversityMetric.CROWDING
    sample_size: int = 50

    def validate(self) -> None:
        errors = []
        if self.niche_radius <= 0:
            errors.append(f"niche_radius must be > 0, got {self.niche_radius}")
        if self.sharing_alpha <= 0:
            errors.append(f"sharing_alpha must be > 0, got {self.sharing_alpha}")
        if self.radius_fraction <= 0:
            errors.append(f"radius_fraction must be > 0, got {self.radius_fraction}")
        if self.base_radius <= 0:
            errors.append(f"base_radius must be > 0, got {self.base_radius}")
        if self.target_diversity <= 0:
            errors.append(f"target_diversity must be > 0, got {self.target_diversity}")
        if self.sample_size < 2:
            errors.append(f"sample_size must be >= 2, got {self.sample_size}")
        if errors:
            raise InvalidConfigError(errors)


@dataclass
class SharingOutcome:
    """Result of a sharing pass"""

    population: List[Candidate]
    applied: bool
    niche_radius: Optional[float] = None
    diversity: Optional[float] = None
    niche_counts: Dict[str, float] = field(default_factory=dict)
    raw_fitness: Dict[str, float] = field(default_factory=dict)


def sharing_function(distance: float, radius: float, alpha: float) -> float:
    """``1 - (d/r)^alpha`` inside the niche, 0 outside."""
    if distance < radius:
        return 1.0 - (distance / radius) ** alpha
    return 0.0


def objective_distance(a: Candidate, b: Candidate, names: Sequence[str]) -> float:
    """Euclidean distance in normalized objective space."""
    return math.sqrt(
        sum(
            (a.normalized_objectives[n] - b.normalized_objectives[n]) ** 2  # type: ignore[index]
            for n in names
        )
    )


class FitnessSharing:
    """
    Niche-based fitness sharing over aggregate fitness.
    Radius estimation by sampling uses a seedable random.Random.
    """

    def __init__(
        self,
        config: Optional[SharingConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or SharingConfig()
        self.config.validate()
        self.rng = rng or random.Random(seed)

    def average_pairwise_distance(self, population: Sequence[Candidate]) -> float:
        """Mean distance between distinct members of a random sample."""
        if len(population) < 2:
            return 0.0
        names = objective_names(population)
        size = min(self.config.sample_size, len(population))
        sample = self.rng.sample(list(population), size)
        distances = [
            objective_distance(a, b, names)
            for i, a in enumerate(sample)
            for b in sample[i + 1 :]
        ]
        return sum(distances) / len(distances)

    def niche_radius(self, population: Sequence[Candidate]) -> float:
        """Niche radius under the configured strategy; always positive."""
        cfg = self.config
        if not population or cfg.strategy is NicheRadiusStrategy.FIXED:
            return cfg.niche_radius
        if cfg.strategy is NicheRadiusStrategy.POPULATION_BASED:
            return cfg.base_radius / math.sqrt(len(population))
        if cfg.strategy is NicheRadiusStrategy.OBJECTIVE_RANGE:
            return cfg.radius_fraction * math.sqrt(len(objective_names(population)))

        average = self.average_pairwise_distance(population)
        if average <= 0:
            return cfg.niche_radius
        if average < cfg.target_diversity * 0.5:
            return max(average * 2.0, cfg.niche_radius)
        if average < cfg.target_diversity:
            return average * 1.5
        return average * 0.5

    def niche_count(
        self,
        candidate: Candidate,
        population: Sequence[Candidate],
        radius: float,
        names: Optional[Sequence[str]] = None,
    ) -> float:
        """Sum of sharing over the population, the candidate itself included."""
        if names is None:
            names = objective_names(population)
        alpha = self.config.sharing_alpha
        return sum(
            sharing_function(objective_distance(candidate, other, names), radius, alpha)
            for other in population
        )

    def apply_sharing(
        self, population: Sequence[Candidate], niche_radius: Optional[float] = None
    ) -> SharingOutcome:
        """Replace each aggregate fitness with ``fitness / niche_count``.

        Args:
            population: Candidates with normalized objectives and aggregate fitness
            niche_radius: Overrides the configured strategy when given

        Returns:
            SharingOutcome holding the shared population, raw fitness and niche counts
        """
        if not population:
            return SharingOutcome(population=[], applied=False)
        require_annotations(population, "normalized_objectives", "aggregate_fitness")
        if niche_radius is not None and niche_radius <= 0:
            raise InvalidConfigError([f"niche_radius must be > 0, got {niche_radius}"])

        radius = niche_radius if niche_radius is not None else self.niche_radius(population)
        names = objective_names(population)
        counts: Dict[str, float] = {}
        raw: Dict[str, float] = {}
        shared: List[Candidate] = []
        for candidate in population:
            count = self.niche_count(candidate, population, radius, names)
            fitness = float(candidate.aggregate_fitness)  # type: ignore[arg-type]
            counts[candidate.id] = count
            raw[candidate.id] = fitness
            shared.append(
                replace(
                    candidate,
                    aggregate_fitness=fitness / count if count > 0 else fitness,
                )
            )
        logger.debug(f"Shared fitness across {len(shared)} candidates (r={radius:.4f})")
        return SharingOutcome(
            population=shared,
            applied=True,
            niche_radius=radius,
            niche_counts=counts,
            raw_fitness=raw,
        )

    def population_diversity(self, population: Sequence[Candidate]) -> float:
        """Diversity under the configured metric.

        ``crowding`` is the mean finite crowding distance; ``pairwise_distance``
        the sampled mean pairwise distance.
        """
        if self.config.diversity_metric is DiversityMetric.PAIRWISE_DISTANCE:
            return self.average_pairwise_distance(population)
        distances = [
            float(c.crowding_distance)  # type: ignore[arg-type]
            for c in population
            if not is_infinite(c.crowding_distance)
        ]
        if not distances:
            return 0.0
        return sum(distances) / len(distances)

    def adaptive_apply_sharing(
        self, population: Sequence[Candidate], niche_radius: Optional[float] = None
    ) -> SharingOutcome:
        """Share only when diversity is below ``diversity_threshold``."""
        if not population:
            return SharingOutcome(population=[], applied=False, diversity=0.0)
        required = ["normalized_objectives", "aggregate_fitness"]
        if self.config.diversity_metric is DiversityMetric.CROWDING:
            required.append("crowding_distance")
        require_annotations(population, *required)

        diversity = self.population_diversity(population)
        threshold = self.config.diversity_threshold
        if diversity >= threshold:
            logger.debug(
                f"Skipping fitness sharing (diversity {diversity:.3f} >= {threshold})"
            )
            return SharingOutcome(
                population=list(population), applied=False, diversity=diversity
            )
        logger.debug(f"Applying fitness sharing (diversity {diversity:.3f} < {threshold})")
        outcome = self.apply_sharing(population, niche_radius)
        outcome.diversity = diversity
        return outcome
