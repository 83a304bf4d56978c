"""
Tournament selection for Pareto Select.
Chooses parents through k-way tournaments over a ranked, crowding-annotated
population.
"""

import logging
import math
import random
import statistics
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from pareto.errors import InvalidConfigError, ValidationError
from pareto.interfaces import (
    DEFAULT_TOURNAMENT_SIZE,
    Candidate,
    descending_distance_key,
    is_infinite,
    require_annotations,
)

logger = logging.getLogger(__name__)


class TournamentStrategy(Enum):
    """How a tournament winner is chosen."""

    PARETO = "pareto"
    DIVERSITY = "diversity"
    ADAPTIVE = "adaptive"


@dataclass
class TournamentConfig:
    """Configuration for tournament selection"""

    tournament_size: int = DEFAULT_TOURNAMENT_SIZE
    strategy: TournamentStrategy = TournamentStrategy.PARETO
    min_tournament_size: int = 2
    max_tournament_size: int = 7
    diversity_threshold: float = 0.5

    def validate(self) -> None:
        errors = []
        if self.tournament_size < 1:
            errors.append(f"tournament_size must be >= 1, got {self.tournament_size}")
        if self.min_tournament_size < 1:
            errors.append(
                f"min_tournament_size must be >= 1, got {self.min_tournament_size}"
            )
        if self.max_tournament_size < self.min_tournament_size:
            errors.append("max_tournament_size must be >= min_tournament_size")
        if not 0.0 < self.diversity_threshold <= 1.0:
            errors.append(
                f"diversity_threshold must be in (0, 1], got {self.diversity_threshold}"
            )
        if errors:
            raise InvalidConfigError(errors)


def pareto_key(candidate: Candidate) -> Tuple:
    """Rank ascending, crowding distance descending, id ascending."""
    return (
        candidate.pareto_rank,
        descending_distance_key(candidate.crowding_distance),  # type: ignore[arg-type]
        candidate.id,
    )


def diversity_key(candidate: Candidate) -> Tuple:
    """Crowding distance descending, rank ascending, id ascending."""
    return (
        descending_distance_key(candidate.crowding_distance),  # type: ignore[arg-type]
        candidate.pareto_rank,
        candidate.id,
    )


def population_diversity(population: Sequence[Candidate]) -> float:
    """Spread of finite crowding distances, squashed into [0, 1).

    ``tanh`` of the coefficient of variation; 0.0 when fewer than two finite
    distances exist or their mean is zero.
    """
    distances = [
        float(c.crowding_distance)  # type: ignore[arg-type]
        for c in population
        if c.crowding_distance is not None and not is_infinite(c.crowding_distance)
    ]
    if len(distances) < 2:
        return 0.0
    mean = statistics.fmean(distances)
    if mean == 0.0:
        return 0.0
    return math.tanh(statistics.pstdev(distances) / mean)


class TournamentSelector:
    """
    K-way tournament selection.
    Sampling uses its own random.Random so runs are reproducible from a seed.
    """

    def __init__(
        self,
        config: Optional[TournamentConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or TournamentConfig()
        self.config.validate()
        self.rng = rng or random.Random(seed)

    def adaptive_tournament_size(self, population: Sequence[Candidate]) -> int:
        """Tournament size from population diversity.

        Below ``diversity_threshold`` the size grows linearly toward
        ``max_tournament_size`` as diversity falls; at or above it the
        minimum size is used.
        """
        cfg = self.config
        diversity = population_diversity(population)
        if diversity >= cfg.diversity_threshold:
            size = cfg.min_tournament_size
        else:
            span = cfg.max_tournament_size - cfg.min_tournament_size
            pressure = 1.0 - diversity / cfg.diversity_threshold
            size = cfg.min_tournament_size + int(round(span * pressure))
        logger.debug(f"Adaptive tournament: diversity={diversity:.3f}, size={size}")
        return size

    def tournament_size_for(self, population: Sequence[Candidate]) -> int:
        if self.config.strategy is TournamentStrategy.ADAPTIVE:
            size = self.adaptive_tournament_size(population)
        else:
            size = self.config.tournament_size
        return max(1, min(size, len(population)))

    def run_tournament(
        self,
        population: Sequence[Candidate],
        size: int,
        key: Callable[[Candidate], Tuple],
    ) -> Candidate:
        """Sample ``size`` distinct entrants and return the one with the smallest key."""
        entrants = self.rng.sample(list(population), size)
        return min(entrants, key=key)

    def select(self, population: Sequence[Candidate], count: int) -> List[Candidate]:
        """Select ``count`` parents, with replacement across tournaments.

        Args:
            population: Candidates carrying pareto_rank and crowding_distance
            count: Number of parents to return

        Returns:
            Winners in tournament order; empty for an empty population
        """
        if count < 0:
            raise ValidationError(
                f"Parent count must be non-negative, got {count}",
                details={"count": count},
            )
        if not population:
            return []
        require_annotations(population, "pareto_rank", "crowding_distance")

        size = self.tournament_size_for(population)
        key = (
            diversity_key
            if self.config.strategy is TournamentStrategy.DIVERSITY
            else pareto_key
        )
        parents = [self.run_tournament(population, size, key) for _ in range(count)]
        logger.info(
            f"Selected {len(parents)} parents from {len(population)} candidates "
            f"({self.config.strategy.value}, k={size})"
        )
        return parents
