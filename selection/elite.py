"""
Elite selection for Pareto Select.
Preserves the best candidates unmodified, optionally guaranteeing the whole
first front survives or spreading elites across it.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from pareto.errors import InvalidConfigError, ValidationError
from pareto.interfaces import (
    DEFAULT_ELITE_RATIO,
    Candidate,
    descending_distance_key,
    objective_names,
    require_annotations,
)

logger = logging.getLogger(__name__)


@dataclass
class EliteConfig:
    """Configuration for elite selection"""

    elite_ratio: float = DEFAULT_ELITE_RATIO
    elite_count: Optional[int] = None
    min_elites: int = 1
    similarity_threshold: Optional[float] = None  # None: 1% of the diagonal

    def validate(self) -> None:
        errors = []
        if not 0.0 <= self.elite_ratio <= 1.0:
            errors.append(f"elite_ratio must be in [0, 1], got {self.elite_ratio}")
        if self.elite_count is not None and self.elite_count < 0:
            errors.append(f"elite_count must be >= 0, got {self.elite_count}")
        if self.min_elites < 0:
            errors.append(f"min_elites must be >= 0, got {self.min_elites}")
        if self.similarity_threshold is not None and self.similarity_threshold < 0:
            errors.append("similarity_threshold must be >= 0")
        if errors:
            raise InvalidConfigError(errors)


def elite_key(candidate: Candidate) -> Tuple:
    """Rank ascending, crowding descending, generation ascending, id ascending."""
    return (
        candidate.pareto_rank,
        descending_distance_key(candidate.crowding_distance),  # type: ignore[arg-type]
        candidate.generation,
        candidate.id,
    )


def _euclidean(a: Sequence[float], b: Sequence[float]) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


class EliteSelector:
    """Selects elites by (rank, crowding distance, generation)."""

    def __init__(self, config: Optional[EliteConfig] = None):
        self.config = config or EliteConfig()
        self.config.validate()

    def elite_count_for(self, population_size: int, count: Optional[int] = None) -> int:
        """Number of elites for a population, from an explicit count or the ratio."""
        if count is None:
            count = self.config.elite_count
        if count is None:
            count = max(
                self.config.min_elites,
                int(round(population_size * self.config.elite_ratio)),
            )
        if count < 0:
            raise ValidationError(
                f"Elite count must be non-negative, got {count}",
                details={"count": count},
            )
        return min(count, population_size)

    def similarity_threshold_for(self, dimensions: int) -> float:
        if self.config.similarity_threshold is not None:
            return self.config.similarity_threshold
        return 0.01 * math.sqrt(dimensions)

    def select_elites(
        self, population: Sequence[Candidate], count: Optional[int] = None
    ) -> List[Candidate]:
        """Top ``count`` candidates by elite order."""
        if not population:
            return []
        require_annotations(population, "pareto_rank", "crowding_distance")
        k = self.elite_count_for(len(population), count)
        return sorted(population, key=elite_key)[:k]

    @staticmethod
    def select_pareto_front(population: Sequence[Candidate]) -> List[Candidate]:
        if not population:
            return []
        require_annotations(population, "pareto_rank")
        return [c for c in population if c.pareto_rank == 1]

    def _spread(
        self,
        candidates: Sequence[Candidate],
        k: int,
        threshold: float,
    ) -> List[Candidate]:
        """Greedy farthest-point pick of ``k`` members.

        Starts from the best member by elite order, then repeatedly adds the
        member farthest from everything already picked. Once no remaining
        member is at least ``threshold`` away, the rest are filled in elite
        order.
        """
        ordered = sorted(candidates, key=elite_key)
        if k <= 0:
            return []
        if k >= len(ordered):
            return ordered
        names = objective_names(ordered)
        vectors = {c.id: c.normalized_vector(names) for c in ordered}

        chosen = [ordered[0]]
        remaining = ordered[1:]
        nearest = {c.id: _euclidean(vectors[c.id], vectors[chosen[0].id]) for c in remaining}
        while len(chosen) < k and remaining:
            best = max(remaining, key=lambda c: (nearest[c.id], -remaining.index(c)))
            if nearest[best.id] < threshold:
                break
            chosen.append(best)
            remaining.remove(best)
            for c in remaining:
                nearest[c.id] = min(nearest[c.id], _euclidean(vectors[c.id], vectors[best.id]))

        if len(chosen) < k:
            logger.debug(
                f"Only {len(chosen)} distinct elites above similarity threshold "
                f"{threshold:.4f}; filling by elite order"
            )
            chosen.extend(remaining[: k - len(chosen)])
        return chosen

    def select_frontier_preserving(
        self, population: Sequence[Candidate], count: Optional[int] = None
    ) -> List[Candidate]:
        """Elites that keep the first front intact whenever it fits.

        If the first front has at most ``count`` members, all of them survive
        and the remaining slots go to the rest of the population in elite
        order. Otherwise exactly ``count`` mutually diverse first-front
        members are chosen.

        Args:
            population: Candidates with rank, crowding and normalized objectives
            count: Number of elites; defaults to the configured count or ratio

        Returns:
            Selected elites
        """
        if not population:
            return []
        require_annotations(
            population, "pareto_rank", "crowding_distance", "normalized_objectives"
        )
        k = self.elite_count_for(len(population), count)
        front = sorted(self.select_pareto_front(population), key=elite_key)

        if len(front) <= k:
            rest = sorted((c for c in population if c.pareto_rank != 1), key=elite_key)
            return front + rest[: k - len(front)]

        threshold = self.similarity_threshold_for(len(objective_names(front)))
        elites = self._spread(front, k, threshold)
        logger.debug(f"Chose {len(elites)} diverse elites from front of {len(front)}")
        return elites

    def select_diverse_elites(
        self,
        population: Sequence[Candidate],
        count: Optional[int] = None,
        similarity_threshold: Optional[float] = None,
    ) -> List[Candidate]:
        """Elites spread across the whole population, skipping near-duplicates."""
        if not population:
            return []
        require_annotations(
            population, "pareto_rank", "crowding_distance", "normalized_objectives"
        )
        k = self.elite_count_for(len(population), count)
        threshold = (
            similarity_threshold
            if similarity_threshold is not None
            else self.similarity_threshold_for(len(objective_names(population)))
        )
        ordered = sorted(population, key=elite_key)
        names = objective_names(ordered)

        chosen: List[Candidate] = []
        skipped: List[Candidate] = []
        for candidate in ordered:
            if len(chosen) >= k:
                break
            vector = candidate.normalized_vector(names)
            if any(
                _euclidean(vector, c.normalized_vector(names)) < threshold
                for c in chosen
            ):
                skipped.append(candidate)
            else:
                chosen.append(candidate)
        if len(chosen) < k:
            chosen.extend(skipped[: k - len(chosen)])
        return chosen
