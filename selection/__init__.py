"""
Selection module for Pareto Select.
Provides tournament, environmental, elite and fitness-sharing operators.
"""

from .crowding import (
    assign_crowding_distances,
    environmental_selection,
    identify_boundary_solutions,
    select_by_crowding_distance,
)
from .elite import EliteConfig, EliteSelector
from .sharing import (
    DiversityMetric,
    FitnessSharing,
    NicheRadiusStrategy,
    SharingConfig,
    SharingOutcome,
)
from .tournament import (
    TournamentConfig,
    TournamentSelector,
    TournamentStrategy,
    population_diversity,
)

__all__ = [
    "TournamentSelector",
    "TournamentConfig",
    "TournamentStrategy",
    "population_diversity",
    "environmental_selection",
    "select_by_crowding_distance",
    "assign_crowding_distances",
    "identify_boundary_solutions",
    "EliteSelector",
    "EliteConfig",
    "FitnessSharing",
    "SharingConfig",
    "SharingOutcome",
    "NicheRadiusStrategy",
    "DiversityMetric",
]
