"""
Structured logging configuration for Pareto Select.
Provides consistent logging across all components with JSON output support.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

EXTRA_FIELDS = (
    "candidate_id",
    "generation",
    "hypervolume",
    "front_count",
    "population_size",
    "duration_ms",
    "event_type",
)


class StructuredFormatter(logging.Formatter):
    """JSON-formatted log output for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable log format for console output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now().strftime("%H:%M:%S")
        level = record.levelname[:4]

        if self.use_colors:
            color = self.COLORS.get(record.levelname, "")
            level = f"{color}{level}{self.RESET}"

        msg = record.getMessage()

        extras = []
        if hasattr(record, "candidate_id"):
            extras.append(f"candidate={record.candidate_id}")
        if hasattr(record, "generation"):
            extras.append(f"gen={record.generation}")
        if hasattr(record, "hypervolume"):
            extras.append(f"hv={record.hypervolume:.4f}")
        if hasattr(record, "duration_ms"):
            extras.append(f"took={record.duration_ms}ms")

        extra_str = f" [{', '.join(extras)}]" if extras else ""

        return f"{ts} {level} {record.name}: {msg}{extra_str}"


class SelectionLogger:
    """Logger for per-generation selection events with structured context."""

    def __init__(self, name: str = "pareto_select"):
        self.logger = logging.getLogger(name)
        self._context: Dict[str, Any] = {}

    def set_context(self, **kwargs) -> None:
        """Set persistent context for all log messages."""
        self._context.update(kwargs)

    def clear_context(self) -> None:
        self._context.clear()

    def _log(self, level: int, msg: str, **kwargs) -> None:
        extra = {**self._context, **kwargs}
        self.logger.log(level, msg, extra=extra)

    def debug(self, msg: str, **kwargs) -> None:
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs) -> None:
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs) -> None:
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs) -> None:
        self._log(logging.ERROR, msg, **kwargs)

    # Selection events
    def generation_start(self, generation: int, population_size: int) -> None:
        self.info(
            f"Starting selection for generation {generation}",
            event_type="generation_start",
            generation=generation,
            population_size=population_size,
        )

    def fronts_ranked(self, generation: int, front_count: int, front_sizes: list) -> None:
        self.debug(
            f"Ranked population into {front_count} fronts {front_sizes}",
            event_type="fronts_ranked",
            generation=generation,
            front_count=front_count,
        )

    def frontier_updated(
        self, generation: int, frontier_size: int, archive_size: int
    ) -> None:
        self.debug(
            f"Frontier holds {frontier_size} solutions, archive {archive_size}",
            event_type="frontier_updated",
            generation=generation,
        )

    def sharing_applied(self, generation: int, niche_radius: float) -> None:
        self.debug(
            f"Applied fitness sharing with radius {niche_radius:.4f}",
            event_type="sharing_applied",
            generation=generation,
        )

    def parents_selected(self, generation: int, count: int) -> None:
        self.debug(
            f"Selected {count} parents",
            event_type="parents_selected",
            generation=generation,
        )

    def survivors_selected(self, generation: int, count: int, strategy: str) -> None:
        self.debug(
            f"Selected {count} survivors ({strategy})",
            event_type="survivors_selected",
            generation=generation,
        )

    def hypervolume_saturated(self, generation: int, hypervolume: float) -> None:
        self.warning(
            "Hypervolume has stopped improving",
            event_type="hypervolume_saturated",
            generation=generation,
            hypervolume=hypervolume,
        )

    def generation_complete(
        self, generation: int, hypervolume: float, front_count: int, duration_ms: int
    ) -> None:
        self.info(
            f"Generation {generation} selection complete",
            event_type="generation_complete",
            generation=generation,
            hypervolume=hypervolume,
            front_count=front_count,
            duration_ms=duration_ms,
        )


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[Path] = None,
    use_colors: bool = True,
) -> None:
    """Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Use JSON format for console output
        log_file: Optional file path for log output
        use_colors: Use colors in console output (ignored if json_output=True)
    """
    root_logger = logging.getLogger("pareto_select")
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    if json_output:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(HumanFormatter(use_colors=use_colors))
    root_logger.addHandler(console_handler)

    # File handler (always JSON for machine parsing)
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    # Core packages log under their own names; route them the same way
    for name in ["pareto", "selection"]:
        logger = logging.getLogger(name)
        logger.setLevel(getattr(logging, level.upper()))
        logger.handlers.clear()
        for handler in root_logger.handlers:
            logger.addHandler(handler)


def get_logger(name: str) -> SelectionLogger:
    """Get a structured logger instance."""
    return SelectionLogger(name)
