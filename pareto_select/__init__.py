"""
Pareto Select.
Multi-objective selection engine for evolutionary prompt optimization.
"""

__version__ = "0.1.0"

from .config import Config, get_config
from .engine import GenerationResult, SelectionEngine

__all__ = [
    "__version__",
    "Config",
    "get_config",
    "SelectionEngine",
    "GenerationResult",
]
