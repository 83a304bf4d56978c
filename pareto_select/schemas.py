"""
Pydantic schemas for configuration and population input.
Validates everything a caller hands to the engine before any selection runs.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class DirectionName(str, Enum):
    """Objective direction as written in configuration."""

    MAXIMIZE = "maximize"
    MINIMIZE = "minimize"


class TournamentStrategyName(str, Enum):
    """Tournament winner strategy."""

    PARETO = "pareto"
    DIVERSITY = "diversity"
    ADAPTIVE = "adaptive"


class SurvivorStrategyName(str, Enum):
    """How survivors for the next generation are chosen."""

    ENVIRONMENTAL = "environmental"
    ELITE = "elite"


class NicheRadiusStrategyName(str, Enum):
    """Niche radius strategy for fitness sharing."""

    FIXED = "fixed"
    POPULATION_BASED = "population_based"
    OBJECTIVE_RANGE = "objective_range"
    ADAPTIVE = "adaptive"


class DiversityMetricName(str, Enum):
    """Diversity metric for adaptive fitness sharing."""

    CROWDING = "crowding"
    PAIRWISE_DISTANCE = "pairwise_distance"


LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


# ============= Configuration Schemas =============


class ObjectiveModel(BaseModel):
    """A declared objective."""

    direction: DirectionName = Field(
        default=DirectionName.MAXIMIZE, description="'maximize' or 'minimize'"
    )
    weight: float = Field(default=1.0, ge=0.0, description="Aggregate fitness weight")


class FrontierSettingsModel(BaseModel):
    """Frontier and archive limits."""

    max_frontier_size: int = Field(default=100, ge=1)
    archive_max_size: int = Field(default=500, ge=1)
    reference_point: Optional[Dict[str, float]] = Field(
        default=None, description="Fixed hypervolume reference point; auto if omitted"
    )
    auto_reference_margin: float = Field(default=0.1, ge=0.0)
    epsilon: Optional[Dict[str, float]] = Field(
        default=None, description="Per-objective tolerance enabling epsilon-dominance"
    )

    @field_validator("epsilon")
    @classmethod
    def epsilon_non_negative(cls, value: Optional[Dict[str, float]]):
        if value is not None:
            negative = [k for k, v in value.items() if v < 0]
            if negative:
                raise ValueError(f"epsilon must be non-negative for {negative}")
        return value


class SelectionSettingsModel(BaseModel):
    """Parent and survivor selection."""

    population_size: int = Field(default=50, ge=1)
    parent_count: Optional[int] = Field(default=None, ge=0)
    tournament_size: int = Field(default=3, ge=1)
    tournament_strategy: TournamentStrategyName = TournamentStrategyName.PARETO
    min_tournament_size: int = Field(default=2, ge=1)
    max_tournament_size: int = Field(default=7, ge=1)
    diversity_threshold: float = Field(default=0.5, gt=0.0, le=1.0)
    survivor_strategy: SurvivorStrategyName = SurvivorStrategyName.ENVIRONMENTAL
    elite_ratio: float = Field(default=0.15, ge=0.0, le=1.0)
    elite_count: Optional[int] = Field(default=None, ge=0)
    similarity_threshold: Optional[float] = Field(default=None, ge=0.0)
    seed: Optional[int] = None

    @model_validator(mode="after")
    def tournament_bounds(self) -> "SelectionSettingsModel":
        if self.max_tournament_size < self.min_tournament_size:
            raise ValueError("max_tournament_size must be >= min_tournament_size")
        return self


class SharingSettingsModel(BaseModel):
    """Fitness sharing."""

    enabled: bool = False
    adaptive: bool = True
    niche_radius_strategy: NicheRadiusStrategyName = (
        NicheRadiusStrategyName.OBJECTIVE_RANGE
    )
    niche_radius: float = Field(default=0.1, gt=0.0)
    sharing_alpha: float = Field(default=1.0, gt=0.0)
    radius_fraction: float = Field(default=0.1, gt=0.0)
    base_radius: float = Field(default=0.3, gt=0.0)
    target_diversity: float = Field(default=0.3, gt=0.0)
    diversity_threshold: float = Field(default=0.3, ge=0.0)
    diversity_metric: DiversityMetricName = DiversityMetricName.CROWDING
    sample_size: int = Field(default=50, ge=2)


class LoggingSettingsModel(BaseModel):
    """Logging output."""

    level: str = "INFO"
    json_output: bool = False
    use_colors: bool = True
    log_file: Optional[str] = None

    @field_validator("level")
    @classmethod
    def known_level(cls, value: str) -> str:
        if value.upper() not in LOG_LEVELS:
            raise ValueError(f"unknown log level '{value}'")
        return value.upper()


class ConfigModel(BaseModel):
    """Complete configuration."""

    objectives: Dict[str, ObjectiveModel] = Field(..., min_length=1)
    frontier: FrontierSettingsModel = Field(default_factory=FrontierSettingsModel)
    selection: SelectionSettingsModel = Field(default_factory=SelectionSettingsModel)
    sharing: SharingSettingsModel = Field(default_factory=SharingSettingsModel)
    logging: LoggingSettingsModel = Field(default_factory=LoggingSettingsModel)
    state_dir: str = ".pareto-select"

    @model_validator(mode="after")
    def objective_keys_match(self) -> "ConfigModel":
        names = set(self.objectives)
        reference = self.frontier.reference_point
        if reference is not None and set(reference) != names:
            raise ValueError(
                "reference_point must name exactly the declared objectives "
                f"{sorted(names)}"
            )
        epsilon = self.frontier.epsilon
        if epsilon is not None and set(epsilon) != names:
            raise ValueError(
                f"epsilon must name exactly the declared objectives {sorted(names)}"
            )
        return self


# ============= Input Schemas =============


class CandidateInput(BaseModel):
    """A measured candidate as supplied by the evaluation stage."""

    id: str = Field(..., min_length=1)
    objectives: Dict[str, float]
    generation: int = Field(default=0, ge=0)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PopulationInput(BaseModel):
    """A population file."""

    candidates: List[CandidateInput] = Field(default_factory=list)


# ============= Output Schemas =============


class GenerationSummary(BaseModel):
    """Compact per-generation report."""

    generation: int
    population_size: int
    front_count: int
    frontier_size: int
    hypervolume: float
    improvement_ratio: Optional[float] = None
    saturated: bool = False
    sharing_applied: bool = False
    parent_ids: List[str] = Field(default_factory=list)
    survivor_ids: List[str] = Field(default_factory=list)
    elite_ids: List[str] = Field(default_factory=list)
    duration_ms: int = 0
