"""Pareto Select: Core Data Model"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import DuplicateCandidateError, MissingAnnotationError

# Defaults

DEFAULT_MAX_FRONTIER_SIZE = 100
DEFAULT_ARCHIVE_MAX_SIZE = 500
DEFAULT_REFERENCE_MARGIN = 0.1
DEFAULT_TOURNAMENT_SIZE = 3
DEFAULT_ELITE_RATIO = 0.15
DEFAULT_SHARING_ALPHA = 1.0
DEFAULT_NICHE_RADIUS = 0.1


class InfiniteDistance:
    """Symbolic crowding distance of a boundary solution.

    Orders above every number but refuses arithmetic, so it can never leak
    into a sum as a float. There is exactly one instance, ``INFINITE``.
    """

    _instance: Optional["InfiniteDistance"] = None

    def __new__(cls) -> "InfiniteDistance":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "INFINITE"

    def __str__(self) -> str:
        return "infinite"

    def __reduce__(self) -> str:
        return "INFINITE"

    def __hash__(self) -> int:
        return hash("pareto.INFINITE")

    def __eq__(self, other: object) -> bool:
        return other is self

    def __lt__(self, other: object) -> bool:
        if other is self or isinstance(other, (int, float)):
            return False
        return NotImplemented

    def __le__(self, other: object) -> bool:
        if other is self:
            return True
        if isinstance(other, (int, float)):
            return False
        return NotImplemented

    def __gt__(self, other: object) -> bool:
        if other is self:
            return False
        if isinstance(other, (int, float)):
            return True
        return NotImplemented

    def __ge__(self, other: object) -> bool:
        if other is self or isinstance(other, (int, float)):
            return True
        return NotImplemented


INFINITE = InfiniteDistance()

CrowdingDistance = Union[float, InfiniteDistance]


def is_infinite(distance: Optional[CrowdingDistance]) -> bool:
    return distance is INFINITE


def add_distance(distance: CrowdingDistance, amount: float) -> CrowdingDistance:
    """Add a finite amount to a crowding distance; infinite stays infinite."""
    if distance is INFINITE:
        return INFINITE
    return distance + amount


def descending_distance_key(distance: CrowdingDistance) -> Tuple[int, float]:
    """Sort key placing larger distances first, infinite before everything."""
    if distance is INFINITE:
        return (0, 0.0)
    return (1, -float(distance))


# Enumerations


class ObjectiveDirection(Enum):
    """Whether larger or smaller raw values are better."""

    MAXIMIZE = "maximize"
    MINIMIZE = "minimize"


class DominanceResult(Enum):
    """Outcome of an ordered pairwise comparison."""

    DOMINATES = "dominates"
    DOMINATED_BY = "dominated_by"
    NON_DOMINATED = "non_dominated"


# Data Classes


@dataclass(frozen=True)
class Objective:
    """A declared objective: name, direction and aggregate weight."""

    name: str
    direction: ObjectiveDirection = ObjectiveDirection.MAXIMIZE
    weight: float = 1.0


@dataclass(frozen=True)
class ObjectiveSpec:
    """Ordered, fixed set of objectives for a run."""

    objectives: Tuple[Objective, ...]

    @property
    def names(self) -> List[str]:
        return [o.name for o in self.objectives]

    @property
    def weights(self) -> Dict[str, float]:
        return {o.name: o.weight for o in self.objectives}

    def get(self, name: str) -> Optional[Objective]:
        for objective in self.objectives:
            if objective.name == name:
                return objective
        return None

    def __contains__(self, name: object) -> bool:
        return self.get(name) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self.objectives)

    def with_weights(self, weights: Mapping[str, float]) -> "ObjectiveSpec":
        return ObjectiveSpec(
            tuple(
                Objective(o.name, o.direction, weights.get(o.name, o.weight))
                for o in self.objectives
            )
        )

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {
            o.name: {"direction": o.direction.value, "weight": o.weight}
            for o in self.objectives
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Any]]) -> "ObjectiveSpec":
        """Build from ``{name: {"direction": ..., "weight": ...}}``."""
        return cls(
            tuple(
                Objective(
                    name=name,
                    direction=ObjectiveDirection(entry.get("direction", "maximize")),
                    weight=float(entry.get("weight", 1.0)),
                )
                for name, entry in data.items()
            )
        )


def default_objective_spec() -> ObjectiveSpec:
    """Accuracy and robustness up, latency and cost down."""
    return ObjectiveSpec(
        (
            Objective("accuracy", ObjectiveDirection.MAXIMIZE, 0.5),
            Objective("latency", ObjectiveDirection.MINIMIZE, 0.2),
            Objective("cost", ObjectiveDirection.MINIMIZE, 0.2),
            Objective("robustness", ObjectiveDirection.MAXIMIZE, 0.1),
        )
    )


@dataclass(frozen=True)
class Candidate:
    """Immutable candidate record; annotations are added with ``replace``."""

    id: str
    objectives: Dict[str, float]
    normalized_objectives: Optional[Dict[str, float]] = None
    aggregate_fitness: Optional[float] = None
    pareto_rank: Optional[int] = None
    crowding_distance: Optional[CrowdingDistance] = None
    generation: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def normalized_vector(self, names: Sequence[str]) -> Tuple[float, ...]:
        if self.normalized_objectives is None:
            raise MissingAnnotationError(self.id, "normalized_objectives")
        return tuple(self.normalized_objectives[n] for n in names)


@dataclass(frozen=True)
class PopulationStats:
    """Per-objective raw min/max over a population."""

    mins: Dict[str, float]
    maxs: Dict[str, float]

    def range(self, name: str) -> float:
        return self.maxs[name] - self.mins[name]


@dataclass(frozen=True)
class Frontier:
    """Persistent non-dominated set plus its archive.

    A value object: managers return a new Frontier rather than mutating one.
    """

    solutions: Dict[str, Candidate] = field(default_factory=dict)
    fronts: Dict[int, List[str]] = field(default_factory=dict)
    archive: Tuple[Candidate, ...] = ()
    hypervolume: Optional[float] = None
    reference_point: Optional[Dict[str, float]] = None
    generation: int = 0

    @property
    def solution_ids(self) -> List[str]:
        return list(self.solutions)

    def __len__(self) -> int:
        return len(self.solutions)


# Validation helpers

ANNOTATIONS = (
    "normalized_objectives",
    "pareto_rank",
    "crowding_distance",
    "aggregate_fitness",
)


def require_annotations(candidates: Iterable[Candidate], *annotations: str) -> None:
    """Raise before any work if a candidate lacks one of ``annotations``."""
    for candidate in candidates:
        for annotation in annotations:
            if getattr(candidate, annotation) is None:
                raise MissingAnnotationError(candidate.id, annotation)


def require_unique_ids(candidates: Iterable[Candidate]) -> None:
    seen = set()
    for candidate in candidates:
        if candidate.id in seen:
            raise DuplicateCandidateError(candidate.id)
        seen.add(candidate.id)


def objective_names(candidates: Sequence[Candidate]) -> List[str]:
    """Objective order shared by a normalized population.

    Every candidate must carry normalized values for the same objectives as
    the first one.
    """
    if not candidates:
        return []
    require_annotations(candidates, "normalized_objectives")
    names = list(candidates[0].normalized_objectives)  # type: ignore[arg-type]
    for candidate in candidates[1:]:
        for name in names:
            if name not in candidate.normalized_objectives:  # type: ignore[operator]
                raise MissingAnnotationError(
                    candidate.id, f"normalized_objectives.{name}"
                )
    return names
