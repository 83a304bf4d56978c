"""
Pareto module for Pareto Select.
Provides normalization, dominance sorting, frontier maintenance and hypervolume.
"""

from .dominance import (
    assign_crowding_distance,
    assign_ranks_and_crowding,
    compare,
    crowding_distances,
    dominates,
    epsilon_dominates,
    fast_non_dominated_sort,
    rank_and_crowd,
)
from .evaluator import FitnessExplanation, MultiObjectiveEvaluator
from .frontier import FrontierManager
from .hypervolume import HypervolumeCalculator, HypervolumeTracker, improvement_ratio
from .interfaces import (
    INFINITE,
    Candidate,
    DominanceResult,
    Frontier,
    Objective,
    ObjectiveDirection,
    ObjectiveSpec,
    PopulationStats,
    default_objective_spec,
)

__all__ = [
    "INFINITE",
    "Candidate",
    "DominanceResult",
    "Frontier",
    "Objective",
    "ObjectiveDirection",
    "ObjectiveSpec",
    "PopulationStats",
    "default_objective_spec",
    "MultiObjectiveEvaluator",
    "FitnessExplanation",
    "compare",
    "dominates",
    "epsilon_dominates",
    "fast_non_dominated_sort",
    "crowding_distances",
    "assign_crowding_distance",
    "rank_and_crowd",
    "assign_ranks_and_crowding",
    "FrontierManager",
    "HypervolumeCalculator",
    "HypervolumeTracker",
    "improvement_ratio",
]
