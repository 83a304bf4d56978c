"""
Pareto dominance for Pareto Select.
Pairwise comparison, fast non-dominated sorting and crowding distance over
normalized objective vectors (higher is better on every axis).
"""

import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import ValidationError
from .interfaces import (
    INFINITE,
    Candidate,
    CrowdingDistance,
    DominanceResult,
    add_distance,
    objective_names,
    require_unique_ids,
)

logger = logging.getLogger(__name__)

Epsilon = Union[float, Mapping[str, float]]
Vector = Tuple[float, ...]


def _vector_dominates(u: Vector, v: Vector) -> bool:
    strictly_better = False
    for a, b in zip(u, v):
        if a < b:
            return False
        if a > b:
            strictly_better = True
    return strictly_better


def _vector_epsilon_dominates(u: Vector, v: Vector, eps: Vector) -> bool:
    strictly_better = False
    for a, b, e in zip(u, v, eps):
        if a + e < b:
            return False
        if a > b + e:
            strictly_better = True
    return strictly_better


def _epsilon_vector(epsilon: Epsilon, names: Sequence[str]) -> Vector:
    if isinstance(epsilon, (int, float)):
        values = tuple(float(epsilon) for _ in names)
    else:
        missing = [n for n in names if n not in epsilon]
        if missing:
            raise ValidationError(
                f"Epsilon missing for objectives: {missing}",
                details={"missing": missing},
            )
        values = tuple(float(epsilon[n]) for n in names)
    if any(e < 0 for e in values):
        raise ValidationError("Epsilon values must be non-negative")
    return values


def _pair_names(a: Candidate, b: Candidate, names: Optional[Sequence[str]]) -> List[str]:
    if names is not None:
        return list(names)
    return objective_names([a, b])


def compare(
    a: Candidate, b: Candidate, names: Optional[Sequence[str]] = None
) -> DominanceResult:
    """Compare two normalized candidates.

    Ties on every objective are NON_DOMINATED, never "equal".
    """
    names = _pair_names(a, b, names)
    u, v = a.normalized_vector(names), b.normalized_vector(names)
    if _vector_dominates(u, v):
        return DominanceResult.DOMINATES
    if _vector_dominates(v, u):
        return DominanceResult.DOMINATED_BY
    return DominanceResult.NON_DOMINATED


def dominates(a: Candidate, b: Candidate, names: Optional[Sequence[str]] = None) -> bool:
    names = _pair_names(a, b, names)
    return _vector_dominates(a.normalized_vector(names), b.normalized_vector(names))


def epsilon_dominates(
    a: Candidate,
    b: Candidate,
    epsilon: Epsilon,
    names: Optional[Sequence[str]] = None,
) -> bool:
    """Relaxed dominance for noisy measurements.

    ``a`` epsilon-dominates ``b`` when ``a[o] + eps[o] >= b[o]`` on every
    objective and ``a[o] > b[o] + eps[o]`` on at least one. With a zero
    epsilon this is ordinary dominance.

    Args:
        a: Candidate with normalized objectives
        b: Candidate with normalized objectives
        epsilon: Scalar tolerance or per-objective mapping

    Returns:
        True if ``a`` epsilon-dominates ``b``
    """
    names = _pair_names(a, b, names)
    return _vector_epsilon_dominates(
        a.normalized_vector(names),
        b.normalized_vector(names),
        _epsilon_vector(epsilon, names),
    )


def _sort_indices(
    vectors: Sequence[Vector], eps: Optional[Vector]
) -> List[List[int]]:
    n = len(vectors)
    if eps is None:
        relation = _vector_dominates
    else:
        def relation(u: Vector, v: Vector) -> bool:
            return _vector_epsilon_dominates(u, v, eps)  # type: ignore[arg-type]

    dominated_sets: List[List[int]] = [[] for _ in range(n)]
    domination_count = [0] * n
    for i in range(n):
        for j in range(i + 1, n):
            if relation(vectors[i], vectors[j]):
                dominated_sets[i].append(j)
                domination_count[j] += 1
            elif relation(vectors[j], vectors[i]):
                dominated_sets[j].append(i)
                domination_count[i] += 1

    fronts: List[List[int]] = []
    current = [i for i in range(n) if domination_count[i] == 0]
    assigned = 0
    while current:
        fronts.append(current)
        assigned += len(current)
        following: List[int] = []
        for i in current:
            for j in dominated_sets[i]:
                domination_count[j] -= 1
                if domination_count[j] == 0:
                    following.append(j)
        current = sorted(following)

    if assigned < n:
        # Epsilon relations are not transitive; cyclic leftovers share a last front.
        placed = {i for front in fronts for i in front}
        fronts.append([i for i in range(n) if i not in placed])
    return fronts


def fast_non_dominated_sort(
    population: Sequence[Candidate], epsilon: Optional[Epsilon] = None
) -> List[List[Candidate]]:
    """Sort a normalized population into ranked fronts (Deb et al.).

    Each returned candidate carries its ``pareto_rank``; front 1 is the
    non-dominated set. Within a front, input order is preserved.

    Args:
        population: Candidates with normalized objectives
        epsilon: Opt-in tolerance for epsilon-dominance

    Returns:
        List of fronts, index 0 holding rank 1
    """
    if not population:
        return []
    require_unique_ids(population)
    names = objective_names(population)
    vectors = [c.normalized_vector(names) for c in population]
    eps = _epsilon_vector(epsilon, names) if epsilon is not None else None

    fronts = [
        [replace(population[i], pareto_rank=rank) for i in front]
        for rank, front in enumerate(_sort_indices(vectors, eps), start=1)
    ]
    logger.debug(
        f"Sorted {len(population)} candidates into {len(fronts)} fronts "
        f"(front 1 size {len(fronts[0])})"
    )
    return fronts


def crowding_distances(
    front: Sequence[Candidate], names: Optional[Sequence[str]] = None
) -> Dict[str, CrowdingDistance]:
    """Crowding distance of every member of one front, keyed by id.

    The minimum and maximum member on each objective are boundary solutions
    with INFINITE distance; a front of two or fewer is entirely boundary.
    An objective with zero spread within the front contributes nothing.
    """
    if not front:
        return {}
    if names is None:
        names = objective_names(front)
    if len(front) <= 2:
        return {c.id: INFINITE for c in front}

    distances: Dict[str, CrowdingDistance] = {c.id: 0.0 for c in front}
    for name in names:
        ordered = sorted(
            range(len(front)),
            key=lambda i: (front[i].normalized_objectives[name], i),  # type: ignore[index]
        )
        low = front[ordered[0]].normalized_objectives[name]  # type: ignore[index]
        high = front[ordered[-1]].normalized_objectives[name]  # type: ignore[index]
        span = high - low
        if span <= 0:
            continue
        distances[front[ordered[0]].id] = INFINITE
        distances[front[ordered[-1]].id] = INFINITE
        for pos in range(1, len(ordered) - 1):
            member = front[ordered[pos]]
            gap = (
                front[ordered[pos + 1]].normalized_objectives[name]  # type: ignore[index]
                - front[ordered[pos - 1]].normalized_objectives[name]  # type: ignore[index]
            )
            distances[member.id] = add_distance(distances[member.id], gap / span)
    return distances


def assign_crowding_distance(
    front: Sequence[Candidate], names: Optional[Sequence[str]] = None
) -> List[Candidate]:
    distances = crowding_distances(front, names)
    return [replace(c, crowding_distance=distances[c.id]) for c in front]


def rank_and_crowd(
    population: Sequence[Candidate], epsilon: Optional[Epsilon] = None
) -> List[List[Candidate]]:
    """Non-dominated sort followed by per-front crowding distance."""
    fronts = fast_non_dominated_sort(population, epsilon)
    if not fronts:
        return []
    names = objective_names(population)
    return [assign_crowding_distance(front, names) for front in fronts]


def assign_ranks_and_crowding(
    population: Sequence[Candidate], epsilon: Optional[Epsilon] = None
) -> List[Candidate]:
    """Annotate rank and crowding distance, returning input order."""
    annotated = {c.id: c for front in rank_and_crowd(population, epsilon) for c in front}
    return [annotated[c.id] for c in population]
