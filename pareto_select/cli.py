"""
CLI interface for pareto-select.
Ranks populations, runs a selection pass and measures hypervolume from JSON
population files.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from pareto.errors import ParetoSelectionError, ValidationError
from pareto.hypervolume import HypervolumeCalculator
from pareto.interfaces import Candidate

from . import __version__
from .config import Config, get_config
from .engine import SelectionEngine
from .logging_config import configure_logging
from .schemas import GenerationSummary, PopulationInput
from .serializers import (
    SelectionJSONEncoder,
    dumps_frontier,
    loads_frontier,
    serialize_candidate,
    serialize_list,
    serialize_ratio,
)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pareto-select",
        description="Multi-objective Pareto selection for evolutionary prompt optimization",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, default=None, help="Config file path")
    parser.add_argument(
        "--state-dir",
        type=Path,
        default=None,
        help="State directory path",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Rank command
    rank_parser = subparsers.add_parser(
        "rank", help="Normalize, rank and crowd a population"
    )
    rank_parser.add_argument("population", type=Path, help="Population JSON file")

    # Select command
    select_parser = subparsers.add_parser(
        "select", help="Run one generation of parent and survivor selection"
    )
    select_parser.add_argument("population", type=Path, help="Population JSON file")
    select_parser.add_argument(
        "--frontier", type=Path, default=None, help="Frontier snapshot to continue from"
    )
    select_parser.add_argument(
        "--save-frontier", type=Path, default=None, help="Write the updated frontier here"
    )
    select_parser.add_argument("--generation", type=int, default=None)
    select_parser.add_argument("--seed", type=int, default=None)

    # Hypervolume command
    hv_parser = subparsers.add_parser(
        "hypervolume", help="Hypervolume of a population's first front"
    )
    hv_parser.add_argument("population", type=Path, help="Population JSON file")
    hv_parser.add_argument(
        "--reference",
        "-r",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Reference point coordinate (normalized); repeat per objective",
    )

    # Init command
    init_parser = subparsers.add_parser(
        "init", help="Initialize pareto-select in current directory"
    )
    init_parser.add_argument(
        "--state-dir",
        dest="init_state_dir",
        type=Path,
        default=Path(".pareto-select"),
        help="State directory path",
    )

    # Config command
    config_parser = subparsers.add_parser("config", help="Show configuration")
    config_parser.add_argument(
        "--show", action="store_true", help="Show current configuration"
    )

    return parser


def load_population(path: Path) -> List[Candidate]:
    """Read a population file: a list of candidates or {"candidates": [...]}."""
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, list):
        data = {"candidates": data}
    try:
        parsed = PopulationInput.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid population file {path}",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e
    return [
        Candidate(
            id=c.id,
            objectives=dict(c.objectives),
            generation=c.generation,
            metadata=dict(c.metadata),
        )
        for c in parsed.candidates
    ]


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, cls=SelectionJSONEncoder))


def _load_config(args: argparse.Namespace) -> Config:
    config = get_config(args.config, args.state_dir)
    config.validate()
    log_file = Path(config.logging.log_file) if config.logging.log_file else None
    configure_logging(
        level=config.logging.level,
        json_output=config.logging.json_output,
        log_file=log_file,
        use_colors=config.logging.use_colors,
    )
    return config


def cmd_rank(args: argparse.Namespace) -> int:
    """Print the population annotated with rank and crowding distance."""
    config = _load_config(args)
    engine = SelectionEngine(config)
    ranked = engine.rank(load_population(args.population))
    ranked.sort(key=lambda c: (c.pareto_rank, c.id))
    _emit(serialize_list(ranked, serialize_candidate))
    return 0


def cmd_select(args: argparse.Namespace) -> int:
    """Run one generation and print a summary."""
    config = _load_config(args)
    engine = SelectionEngine(config, seed=args.seed)
    frontier = None
    if args.frontier and args.frontier.exists():
        frontier = loads_frontier(args.frontier.read_text())
    result = engine.run_generation(
        load_population(args.population), frontier, args.generation
    )

    if args.save_frontier:
        args.save_frontier.parent.mkdir(parents=True, exist_ok=True)
        args.save_frontier.write_text(dumps_frontier(result.frontier, indent=2))

    summary = GenerationSummary(
        generation=result.generation,
        population_size=len(result.population),
        front_count=len(result.fronts),
        frontier_size=len(result.frontier.solutions),
        hypervolume=result.hypervolume,
        saturated=result.saturated,
        sharing_applied=result.sharing_applied,
        parent_ids=[c.id for c in result.parents],
        survivor_ids=[c.id for c in result.survivors],
        elite_ids=[c.id for c in result.elites],
        duration_ms=result.duration_ms,
    ).model_dump()
    summary["improvement_ratio"] = serialize_ratio(result.improvement_ratio)
    _emit(summary)
    return 0


def _parse_reference(pairs: List[str]) -> Optional[Dict[str, float]]:
    if not pairs:
        return None
    reference: Dict[str, float] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep:
            raise ValidationError(
                f"Reference coordinate must be NAME=VALUE, got '{pair}'",
                details={"value": pair},
            )
        try:
            reference[name.strip()] = float(value)
        except ValueError as e:
            raise ValidationError(
                f"Reference value for '{name}' is not a number",
                details={"value": pair},
            ) from e
    return reference


def cmd_hypervolume(args: argparse.Namespace) -> int:
    """Print the hypervolume of the population's first front."""
    config = _load_config(args)
    engine = SelectionEngine(config)
    ranked = engine.rank(load_population(args.population))
    front = [c for c in ranked if c.pareto_rank == 1]
    calculator = HypervolumeCalculator(margin=config.frontier.auto_reference_margin)
    reference = _parse_reference(args.reference) or config.frontier.reference_point
    if reference is None and ranked:
        reference = calculator.auto_reference_point(ranked)
    value = calculator.calculate(front, reference)
    _emit(
        {
            "hypervolume": value,
            "front_size": len(front),
            "reference_point": reference,
        }
    )
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize pareto-select in current directory."""
    state_dir = args.init_state_dir
    config_file = state_dir / "config.json"

    if config_file.exists():
        print(f"Already initialized at {state_dir}")
        return 0

    Config(state_dir=str(state_dir)).save(config_file)
    print(f"Initialized pareto-select at {state_dir}")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Show configuration."""
    config = get_config(args.config, args.state_dir)

    print("Current Configuration")
    print("-" * 40)
    for section, values in config.to_dict().items():
        if isinstance(values, dict):
            print(f"[{section}]")
            for key, value in values.items():
                print(f"  {key}: {value}")
        else:
            print(f"{section}: {values}")

    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "rank": cmd_rank,
        "select": cmd_select,
        "hypervolume": cmd_hypervolume,
        "init": cmd_init,
        "config": cmd_config,
    }

    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except ParetoSelectionError as e:
        print(json.dumps(e.to_dict(), cls=SelectionJSONEncoder), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
