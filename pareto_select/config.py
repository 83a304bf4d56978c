"""
Centralized configuration management for pareto-select.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from pareto.errors import InvalidConfigError
from pareto.interfaces import ObjectiveSpec, default_objective_spec
from selection.elite import EliteConfig
from selection.sharing import DiversityMetric, NicheRadiusStrategy, SharingConfig
from selection.tournament import TournamentConfig, TournamentStrategy

from .schemas import ConfigModel

logger = logging.getLogger(__name__)


@dataclass
class FrontierSettings:
    """Frontier, archive and hypervolume settings."""

    max_frontier_size: int = 100
    archive_max_size: int = 500
    reference_point: Optional[Dict[str, float]] = None
    auto_reference_margin: float = 0.1
    epsilon: Optional[Dict[str, float]] = None


@dataclass
class SelectionSettings:
    """Parent and survivor selection settings."""

    population_size: int = 50
    parent_count: Optional[int] = None
    tournament_size: int = 3
    tournament_strategy: str = "pareto"
    min_tournament_size: int = 2
    max_tournament_size: int = 7
    diversity_threshold: float = 0.5
    survivor_strategy: str = "environmental"
    elite_ratio: float = 0.15
    elite_count: Optional[int] = None
    similarity_threshold: Optional[float] = None
    seed: Optional[int] = None


@dataclass
class SharingSettings:
    """Fitness sharing settings."""

    enabled: bool = False
    adaptive: bool = True
    niche_radius_strategy: str = "objective_range"
    niche_radius: float = 0.1
    sharing_alpha: float = 1.0
    radius_fraction: float = 0.1
    base_radius: float = 0.3
    target_diversity: float = 0.3
    diversity_threshold: float = 0.3
    diversity_metric: str = "crowding"
    sample_size: int = 50


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    json_output: bool = False
    use_colors: bool = True
    log_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration container."""

    objectives: Dict[str, Dict[str, Any]] = field(
        default_factory=lambda: default_objective_spec().to_dict()
    )
    frontier: FrontierSettings = field(default_factory=FrontierSettings)
    selection: SelectionSettings = field(default_factory=SelectionSettings)
    sharing: SharingSettings = field(default_factory=SharingSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    state_dir: str = ".pareto-select"

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        try:
            return cls(
                objectives=data.get("objectives")
                or default_objective_spec().to_dict(),
                frontier=FrontierSettings(**data.get("frontier", {})),
                selection=SelectionSettings(**data.get("selection", {})),
                sharing=SharingSettings(**data.get("sharing", {})),
                logging=LoggingSettings(**data.get("logging", {})),
                state_dir=data.get("state_dir", ".pareto-select"),
            )
        except TypeError as e:
            raise InvalidConfigError([str(e)]) from e

    def save(self, path: Optional[Path] = None) -> None:
        """Save config to file."""
        if path is None:
            path = Path(self.state_dir) / "config.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load config from file."""
        with open(path) as f:
            data = json.load(f)
        return cls.from_dict(data)

    def validate(self) -> None:
        """Check every section, raising InvalidConfigError listing all problems."""
        try:
            ConfigModel.model_validate(self.to_dict())
        except PydanticValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            ]
            raise InvalidConfigError(errors) from e

    # Builders for the selection components

    def objective_spec(self) -> ObjectiveSpec:
        return ObjectiveSpec.from_dict(self.objectives)

    def tournament_config(self) -> TournamentConfig:
        s = self.selection
        return TournamentConfig(
            tournament_size=s.tournament_size,
            strategy=TournamentStrategy(s.tournament_strategy),
            min_tournament_size=s.min_tournament_size,
            max_tournament_size=s.max_tournament_size,
            diversity_threshold=s.diversity_threshold,
        )

    def elite_config(self) -> EliteConfig:
        s = self.selection
        return EliteConfig(
            elite_ratio=s.elite_ratio,
            elite_count=s.elite_count,
            similarity_threshold=s.similarity_threshold,
        )

    def sharing_config(self) -> SharingConfig:
        s = self.sharing
        return SharingConfig(
            strategy=NicheRadiusStrategy(s.niche_radius_strategy),
            niche_radius=s.niche_radius,
            sharing_alpha=s.sharing_alpha,
            radius_fraction=s.radius_fraction,
            base_radius=s.base_radius,
            target_diversity=s.target_diversity,
            diversity_threshold=s.diversity_threshold,
            diversity_metric=DiversityMetric(s.diversity_metric),
            sample_size=s.sample_size,
        )


def get_config(
    config_path: Optional[Path] = None,
    state_dir: Optional[Path] = None,
) -> Config:
    """Get configuration, loading from file if available.

    Priority:
    1. Explicit config_path
    2. Config in state_dir
    3. Config in current directory
    4. Environment variables
    5. Defaults
    """
    paths_to_try = []

    if config_path:
        paths_to_try.append(config_path)
    if state_dir:
        paths_to_try.append(state_dir / "config.json")
    paths_to_try.extend(
        [
            Path(".pareto-select") / "config.json",
            Path("pareto-select.json"),
        ]
    )

    for path in paths_to_try:
        if path.exists():
            config = Config.load(path)
            _apply_env_overrides(config)
            return config

    config = Config()
    _apply_env_overrides(config)
    return config


def _parse_bool(value: str) -> bool:
    return value.lower() in ("1", "true", "yes")


def _apply_env_overrides(config: Config) -> None:
    """Apply environment variable overrides to config."""
    env_mappings: Dict[str, tuple] = {
        "PARETO_SELECT_MAX_FRONTIER_SIZE": ("frontier", "max_frontier_size", int),
        "PARETO_SELECT_ARCHIVE_MAX_SIZE": ("frontier", "archive_max_size", int),
        "PARETO_SELECT_REFERENCE_MARGIN": ("frontier", "auto_reference_margin", float),
        "PARETO_SELECT_POPULATION_SIZE": ("selection", "population_size", int),
        "PARETO_SELECT_TOURNAMENT_SIZE": ("selection", "tournament_size", int),
        "PARETO_SELECT_TOURNAMENT_STRATEGY": ("selection", "tournament_strategy", str),
        "PARETO_SELECT_SURVIVOR_STRATEGY": ("selection", "survivor_strategy", str),
        "PARETO_SELECT_ELITE_RATIO": ("selection", "elite_ratio", float),
        "PARETO_SELECT_SEED": ("selection", "seed", int),
        "PARETO_SELECT_SHARING_ENABLED": ("sharing", "enabled", _parse_bool),
        "PARETO_SELECT_NICHE_STRATEGY": ("sharing", "niche_radius_strategy", str),
        "PARETO_SELECT_LOG_LEVEL": ("logging", "level", str),
        "PARETO_SELECT_LOG_JSON": ("logging", "json_output", _parse_bool),
        "PARETO_SELECT_STATE_DIR": (None, "state_dir", str),
    }

    for env_var, (section, key, converter) in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            try:
                converted = converter(value)
            except (ValueError, TypeError):
                logger.warning(f"Ignoring invalid value for {env_var}: {value!r}")
                continue
            if section:
                setattr(getattr(config, section), key, converted)
            else:
                setattr(config, key, converted)
