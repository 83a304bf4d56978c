"""
Serialization utilities for candidates, frontiers and generation results.
Produces JSON-safe dictionaries that restore to identical values, so a
checkpointing layer can persist a Frontier between runs.
"""

import json
import math
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pareto.errors import ValidationError
from pareto.interfaces import INFINITE, Candidate, CrowdingDistance, Frontier, InfiniteDistance

INFINITE_TOKEN = "infinite"


class SelectionJSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for selection types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, InfiniteDistance):
            return INFINITE_TOKEN
        if isinstance(obj, Enum):
            return obj.value
        if is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)
        return super().default(obj)


def serialize_distance(distance: Optional[CrowdingDistance]) -> Any:
    if distance is INFINITE:
        return INFINITE_TOKEN
    return distance


def deserialize_distance(value: Any) -> Optional[CrowdingDistance]:
    if value == INFINITE_TOKEN:
        return INFINITE
    if value is None:
        return None
    return float(value)


def serialize_ratio(value: Optional[float]) -> Any:
    """Improvement ratios may be +inf, which JSON cannot carry."""
    if value is not None and math.isinf(value):
        return INFINITE_TOKEN
    return value


def serialize_candidate(candidate: Candidate) -> Dict[str, Any]:
    """Convert Candidate to a JSON-safe dict.

    Args:
        candidate: Candidate dataclass instance

    Returns:
        JSON-serializable dictionary
    """
    return {
        "id": candidate.id,
        "objectives": dict(candidate.objectives),
        "normalized_objectives": (
            dict(candidate.normalized_objectives)
            if candidate.normalized_objectives is not None
            else None
        ),
        "aggregate_fitness": candidate.aggregate_fitness,
        "pareto_rank": candidate.pareto_rank,
        "crowding_distance": serialize_distance(candidate.crowding_distance),
        "generation": candidate.generation,
        "metadata": candidate.metadata,
    }


def deserialize_candidate(data: Dict[str, Any]) -> Candidate:
    """Convert a dict back to a Candidate.

    Args:
        data: Dictionary produced by serialize_candidate

    Returns:
        Candidate dataclass instance

    Raises:
        ValidationError: If id or objectives are missing
    """
    for key in ("id", "objectives"):
        if key not in data:
            raise ValidationError(
                f"'{key}' is required in candidate data", details={"field": key}
            )
    normalized = data.get("normalized_objectives")
    return Candidate(
        id=str(data["id"]),
        objectives={k: float(v) for k, v in data["objectives"].items()},
        normalized_objectives=(
            {k: float(v) for k, v in normalized.items()}
            if normalized is not None
            else None
        ),
        aggregate_fitness=data.get("aggregate_fitness"),
        pareto_rank=data.get("pareto_rank"),
        crowding_distance=deserialize_distance(data.get("crowding_distance")),
        generation=data.get("generation", 0),
        metadata=data.get("metadata") or {},
    )


def serialize_frontier(frontier: Frontier) -> Dict[str, Any]:
    """Convert Frontier to a JSON-safe dict.

    Front ranks become string keys, as JSON object keys must be strings.
    """
    return {
        "solutions": [serialize_candidate(c) for c in frontier.solutions.values()],
        "fronts": {str(rank): list(ids) for rank, ids in frontier.fronts.items()},
        "archive": [serialize_candidate(c) for c in frontier.archive],
        "hypervolume": frontier.hypervolume,
        "reference_point": (
            dict(frontier.reference_point)
            if frontier.reference_point is not None
            else None
        ),
        "generation": frontier.generation,
    }


def deserialize_frontier(data: Dict[str, Any]) -> Frontier:
    """Restore a Frontier from serialize_frontier output."""
    solutions = [deserialize_candidate(c) for c in data.get("solutions", [])]
    return Frontier(
        solutions={c.id: c for c in solutions},
        fronts={int(rank): list(ids) for rank, ids in data.get("fronts", {}).items()},
        archive=tuple(deserialize_candidate(c) for c in data.get("archive", [])),
        hypervolume=data.get("hypervolume"),
        reference_point=data.get("reference_point"),
        generation=data.get("generation", 0),
    )


def dumps_frontier(frontier: Frontier, indent: Optional[int] = None) -> str:
    return json.dumps(serialize_frontier(frontier), indent=indent, cls=SelectionJSONEncoder)


def loads_frontier(text: str) -> Frontier:
    return deserialize_frontier(json.loads(text))


def serialize_generation_result(result: Any) -> Dict[str, Any]:
    """Convert GenerationResult to a JSON-safe dict.

    Args:
        result: GenerationResult dataclass instance

    Returns:
        JSON-serializable dictionary
    """
    return {
        "generation": result.generation,
        "population": [serialize_candidate(c) for c in result.population],
        "fronts": [list(ids) for ids in result.fronts],
        "parent_ids": [c.id for c in result.parents],
        "survivor_ids": [c.id for c in result.survivors],
        "elite_ids": [c.id for c in result.elites],
        "frontier": serialize_frontier(result.frontier),
        "hypervolume": result.hypervolume,
        "improvement_ratio": serialize_ratio(result.improvement_ratio),
        "saturated": result.saturated,
        "sharing_applied": result.sharing_applied,
        "duration_ms": result.duration_ms,
    }


def serialize_list(
    items: List[Any], serializer: Callable[[Any], Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """Serialize a list of items using the provided serializer."""
    return [serializer(item) for item in items]
