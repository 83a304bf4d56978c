"""
Hypervolume indicator for Pareto Select.
Exact dominated volume of a normalized solution set relative to a reference
point, per-solution exclusive contributions, and saturation tracking across
generations.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import InvalidConfigError, InvalidReferencePointError
from .interfaces import DEFAULT_REFERENCE_MARGIN, Candidate, objective_names

logger = logging.getLogger(__name__)

Vector = Tuple[float, ...]


def _dominates(u: Vector, v: Vector) -> bool:
    return all(a >= b for a, b in zip(u, v)) and any(a > b for a, b in zip(u, v))


def _non_dominated(points: Sequence[Vector]) -> List[Vector]:
    unique = list(dict.fromkeys(points))
    return [p for p in unique if not any(_dominates(q, p) for q in unique if q != p)]


def _sweep_2d(points: Sequence[Vector], ref: Vector) -> float:
    area = 0.0
    ceiling = ref[1]
    for x, y in sorted(points, key=lambda p: (-p[0], -p[1])):
        if y > ceiling:
            area += (x - ref[0]) * (y - ceiling)
            ceiling = y
    return area


def hypervolume(points: Sequence[Vector], reference: Vector) -> float:
    """Volume dominated by ``points`` and bounded below by ``reference``.

    All objectives are maximized. Points that do not strictly exceed the
    reference on every axis enclose no volume and are ignored.

    Args:
        points: Objective vectors of equal length
        reference: Lower corner of the measured region

    Returns:
        Non-negative hypervolume
    """
    dims = len(reference)
    live = [p for p in points if all(p[i] > reference[i] for i in range(dims))]
    if not live:
        return 0.0
    if dims == 1:
        return max(p[0] for p in live) - reference[0]
    if dims == 2:
        return _sweep_2d(live, reference)

    # Slice along the last axis from the top down; each slab is the (d-1)-volume
    # of every point reaching that height times the slab thickness.
    live = sorted(_non_dominated(live), key=lambda p: -p[-1])
    volume = 0.0
    for i, point in enumerate(live):
        floor = live[i + 1][-1] if i + 1 < len(live) else reference[-1]
        depth = point[-1] - floor
        if depth > 0:
            projected = [p[:-1] for p in live[: i + 1]]
            volume += depth * hypervolume(_non_dominated(projected), reference[:-1])
    return volume


def improvement_ratio(current: float, previous: float) -> float:
    """Relative hypervolume change between two generations.

    ``+inf`` when growing from zero, ``0.0`` when both are zero.
    """
    if previous == 0:
        return math.inf if current > 0 else 0.0
    return (current - previous) / previous


class HypervolumeCalculator:
    """
    Measures frontier quality in normalized objective space.
    Reference points are mappings of objective name to value.
    """

    def __init__(self, margin: float = DEFAULT_REFERENCE_MARGIN):
        if margin < 0:
            raise InvalidConfigError([f"reference margin must be >= 0, got {margin}"])
        self.margin = margin

    def auto_reference_point(
        self, population: Sequence[Candidate], margin: Optional[float] = None
    ) -> Dict[str, float]:
        """Nadir-style reference point for ``population``.

        Each coordinate is the population minimum minus ``margin`` times the
        observed range, or minus ``margin`` itself when the range is zero.
        """
        if margin is None:
            margin = self.margin
        names = objective_names(population)
        reference: Dict[str, float] = {}
        for name in names:
            values = [c.normalized_objectives[name] for c in population]  # type: ignore[index]
            low, high = min(values), max(values)
            span = high - low
            reference[name] = low - margin * (span if span > 0 else 1.0)
        return reference

    def validate_reference_point(
        self,
        solutions: Sequence[Candidate],
        reference_point: Mapping[str, float],
        names: Optional[Sequence[str]] = None,
    ) -> None:
        """Raise unless every solution weakly dominates ``reference_point``.

        A solution equal to the reference on some objective is accepted and
        encloses no volume along that axis; a zero ``margin`` places the auto
        reference exactly on the population minimum.
        """
        if names is None:
            names = objective_names(solutions)
        missing = [n for n in names if n not in reference_point]
        if missing:
            raise InvalidReferencePointError(
                f"missing objectives {missing}", {"missing": missing}
            )
        extra = [n for n in reference_point if n not in names]
        if extra and solutions:
            raise InvalidReferencePointError(
                f"undeclared objectives {extra}", {"unknown": extra}
            )
        for candidate in solutions:
            for name in names:
                value = candidate.normalized_objectives[name]  # type: ignore[index]
                if value < reference_point[name]:
                    raise InvalidReferencePointError(
                        f"candidate {candidate.id} is worse than the reference "
                        f"point on '{name}'",
                        {
                            "candidate_id": candidate.id,
                            "objective": name,
                            "value": value,
                            "reference": reference_point[name],
                        },
                    )

    def _prepare(
        self,
        solutions: Sequence[Candidate],
        reference_point: Optional[Mapping[str, float]],
    ) -> Tuple[List[str], Vector]:
        names = objective_names(solutions)
        if reference_point is None:
            reference_point = self.auto_reference_point(solutions)
        self.validate_reference_point(solutions, reference_point, names)
        return names, tuple(float(reference_point[n]) for n in names)

    def calculate(
        self,
        solutions: Sequence[Candidate],
        reference_point: Optional[Mapping[str, float]] = None,
    ) -> float:
        """Hypervolume of ``solutions``; 0.0 for an empty set.

        Args:
            solutions: Candidates with normalized objectives
            reference_point: Name to value mapping; derived automatically if None

        Returns:
            Dominated volume
        """
        if not solutions:
            return 0.0
        names, reference = self._prepare(solutions, reference_point)
        return hypervolume([c.normalized_vector(names) for c in solutions], reference)

    def contributions(
        self,
        solutions: Sequence[Candidate],
        reference_point: Optional[Mapping[str, float]] = None,
    ) -> Dict[str, float]:
        """Exclusive contribution ``HV(S) - HV(S without s)`` for every member.

        Computed exactly in every dimension; values are meant for ranking
        members against each other.
        """
        if not solutions:
            return {}
        names, reference = self._prepare(solutions, reference_point)
        vectors = [c.normalized_vector(names) for c in solutions]
        total = hypervolume(vectors, reference)
        result: Dict[str, float] = {}
        for i, candidate in enumerate(solutions):
            rest = vectors[:i] + vectors[i + 1 :]
            result[candidate.id] = max(0.0, total - hypervolume(rest, reference))
        return result

    def contribution(
        self,
        solution_id: str,
        solutions: Sequence[Candidate],
        reference_point: Optional[Mapping[str, float]] = None,
    ) -> float:
        """Exclusive contribution of one member; 0.0 if it is not in the set."""
        target = [c for c in solutions if c.id == solution_id]
        if not target:
            return 0.0
        names, reference = self._prepare(solutions, reference_point)
        vectors = [c.normalized_vector(names) for c in solutions]
        rest = [c.normalized_vector(names) for c in solutions if c.id != solution_id]
        return max(0.0, hypervolume(vectors, reference) - hypervolume(rest, reference))

    @staticmethod
    def improvement(current: float, previous: float) -> float:
        return improvement_ratio(current, previous)


@dataclass
class HypervolumeRecord:
    """Hypervolume observed for a single generation"""

    generation: int
    hypervolume: float
    absolute_improvement: Optional[float] = None
    relative_improvement: Optional[float] = None


@dataclass
class HypervolumeTracker:
    """
    Detects frontier saturation from hypervolume growth.

    A generation counts as improving when any of the absolute, relative or
    windowed-average improvements exceeds its threshold. The tracker is
    saturated after ``patience`` consecutive non-improving generations.
    """

    absolute_threshold: float = 0.001
    relative_threshold: float = 0.01
    average_threshold: float = 0.005
    window_size: int = 5
    patience: int = 5
    max_history: int = 100
    history: List[HypervolumeRecord] = field(default_factory=list)
    patience_counter: int = 0
    saturated: bool = False

    def __post_init__(self) -> None:
        errors = []
        if self.window_size < 1:
            errors.append("window_size must be >= 1")
        if self.patience < 1:
            errors.append("patience must be >= 1")
        if self.max_history < 2:
            errors.append("max_history must be >= 2")
        if errors:
            raise InvalidConfigError(errors)

    @property
    def current(self) -> Optional[float]:
        return self.history[-1].hypervolume if self.history else None

    @property
    def recent_improvement(self) -> Optional[float]:
        return self.history[-1].absolute_improvement if self.history else None

    def average_improvement_rate(self) -> float:
        """Mean absolute improvement over the last ``window_size`` records."""
        window = self.history[-self.window_size :]
        improvements = [
            r.absolute_improvement for r in window if r.absolute_improvement is not None
        ]
        if not improvements:
            return 0.0
        return sum(improvements) / len(improvements)

    def update(
        self,
        hypervolume: float,
        generation: Optional[int] = None,
        previous: Optional[float] = None,
    ) -> bool:
        """Record a generation's hypervolume and return the saturation flag.

        ``previous`` is the prior frontier's hypervolume measured against the
        same reference point as ``hypervolume``; the last recorded value is
        used when it is None.
        """
        last = self.history[-1] if self.history else None
        if generation is None:
            generation = last.generation + 1 if last else 1
        if previous is None and last is not None:
            previous = last.hypervolume
        record = HypervolumeRecord(generation=generation, hypervolume=hypervolume)
        self.history.append(record)
        if len(self.history) > self.max_history:
            del self.history[: len(self.history) - self.max_history]

        if previous is None:
            self.saturated = False
            return self.saturated

        absolute = hypervolume - previous
        relative = absolute / previous if previous > 0 else 0.0
        record.absolute_improvement = absolute
        record.relative_improvement = relative
        average = self.average_improvement_rate()

        improving = (
            absolute > self.absolute_threshold
            or relative > self.relative_threshold
            or average > self.average_threshold
        )
        self.patience_counter = 0 if improving else self.patience_counter + 1
        was_saturated = self.saturated
        self.saturated = self.patience_counter >= self.patience
        if self.saturated and not was_saturated:
            logger.info(
                f"Hypervolume saturated at generation {generation} "
                f"({hypervolume:.6f})"
            )
        return self.saturated

    def reset(self) -> None:
        self.history.clear()
        self.patience_counter = 0
        self.saturated = False
