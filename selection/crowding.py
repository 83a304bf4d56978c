"""
Crowding-distance survivor selection for Pareto Select.
NSGA-II environmental selection: fill the next generation front by front and
truncate the last partial front by crowding distance.
"""

import logging
from typing import Dict, List, Optional, Sequence

from pareto.dominance import Epsilon, rank_and_crowd
from pareto.errors import ValidationError
from pareto.interfaces import (
    Candidate,
    descending_distance_key,
    objective_names,
    require_annotations,
    require_unique_ids,
)

logger = logging.getLogger(__name__)


def _check_target(target_size: int) -> None:
    if target_size < 0:
        raise ValidationError(
            f"Target size must be non-negative, got {target_size}",
            details={"target_size": target_size},
        )


def crowding_order_key(candidate: Candidate):
    """Rank ascending, crowding distance descending, id ascending."""
    return (
        candidate.pareto_rank,
        descending_distance_key(candidate.crowding_distance),  # type: ignore[arg-type]
        candidate.id,
    )


def assign_crowding_distances(
    population: Sequence[Candidate], epsilon: Optional[Epsilon] = None
) -> List[Candidate]:
    """Rank and crowd ``population``, returned front by front."""
    return [c for front in rank_and_crowd(population, epsilon) for c in front]


def select_by_crowding_distance(
    population: Sequence[Candidate], target_size: int
) -> List[Candidate]:
    """Keep the ``target_size`` best by (rank, crowding distance).

    Uses the annotations already present; nothing is re-ranked.
    """
    _check_target(target_size)
    if not population:
        return []
    require_annotations(population, "pareto_rank", "crowding_distance")
    return sorted(population, key=crowding_order_key)[:target_size]


def environmental_selection(
    population: Sequence[Candidate],
    target_size: int,
    epsilon: Optional[Epsilon] = None,
) -> List[Candidate]:
    """Choose survivors from a merged parent and offspring population.

    Whole fronts are admitted in rank order while they fit; the first front
    that does not fit is sorted by crowding distance (descending, ties by id)
    and truncated to fill the remaining slots.

    Args:
        population: Candidates with normalized objectives
        target_size: Size of the next generation
        epsilon: Opt-in tolerance for epsilon-dominance

    Returns:
        Survivors annotated with rank and crowding distance
    """
    _check_target(target_size)
    if not population:
        return []
    require_unique_ids(population)
    fronts = rank_and_crowd(population, epsilon)

    survivors: List[Candidate] = []
    for front in fronts:
        room = target_size - len(survivors)
        if room <= 0:
            break
        if len(front) <= room:
            survivors.extend(front)
        else:
            ordered = sorted(
                front,
                key=lambda c: (descending_distance_key(c.crowding_distance), c.id),  # type: ignore[arg-type]
            )
            survivors.extend(ordered[:room])
            logger.debug(
                f"Truncated front {front[0].pareto_rank} from {len(front)} to {room}"
            )
    logger.info(f"Environmental selection kept {len(survivors)} of {len(population)}")
    return survivors


def identify_boundary_solutions(population: Sequence[Candidate]) -> List[str]:
    """Ids holding the minimum or maximum normalized value of any objective."""
    if not population:
        return []
    names = objective_names(population)
    boundary: Dict[str, None] = {}
    for name in names:
        values = [c.normalized_objectives[name] for c in population]  # type: ignore[index]
        low, high = min(values), max(values)
        for candidate, value in zip(population, values):
            if value == low or value == high:
                boundary[candidate.id] = None
    return list(boundary)
