"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                     SEARCH CONFIG - Centralized Parameters                    ║
║                                                                              ║
║   Single source of truth for:                                                ║
║   • Generation budget and refinement rounds                                  ║
║   • Discovery threshold                                                      ║
║   • Fitness statistics (confidence z-score, retirement rule)                 ║
║                                                                              ║
║   Immutable defaults with presets; JSON files can override any field.        ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from __future__ import annotations
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Dict, Any, Optional, Union
import json
import logging

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════════
# FITNESS POLICY
# ══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FitnessPolicy:
    """
    Statistics used by the fitness tracker.

    The interval is a normal approximation of a binomial proportion;
    retirement disables a design once there is enough evidence it is poor.
    """
    z_score: float = 1.96               # 95% two-sided
    retire_min_evaluations: int = 5     # Evidence needed before retiring
    retire_below_mean: float = 0.3      # Strictly below this mean → retired

    def __post_init__(self):
        if self.z_score <= 0:
            raise ConfigurationError(f"z_score must be positive, got {self.z_score}")
        if self.retire_min_evaluations < 1:
            raise ConfigurationError(
                f"retire_min_evaluations must be >= 1, got {self.retire_min_evaluations}"
            )
        if not 0.0 <= self.retire_below_mean <= 1.0:
            raise ConfigurationError(
                f"retire_below_mean must be in [0, 1], got {self.retire_below_mean}"
            )


# ══════════════════════════════════════════════════════════════════════════════
# SEARCH CONFIG
# ══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SearchConfig:
    """
    Per-run configuration of the meta search.

    USAGE:
        config = SearchConfig()                     # Defaults
        config = SearchConfig.for_quick_test()      # Preset for tests
        config = SearchConfig(max_generations=25)   # Override a field
        config = load_config("search.json")         # From file
    """
    max_generations: int = 10
    evaluations_per_agent: int = 5      # Informational only, never enforced
    refinement_rounds: int = 2
    min_fitness_threshold: float = 0.3

    # Prompt / report sizes
    top_n: int = 5
    status_top_n: int = 3

    def __post_init__(self):
        if self.max_generations < 0:
            raise ConfigurationError(
                f"max_generations must be >= 0, got {self.max_generations}"
            )
        if self.evaluations_per_agent < 0:
            raise ConfigurationError(
                f"evaluations_per_agent must be >= 0, got {self.evaluations_per_agent}"
            )
        if self.refinement_rounds < 0:
            raise ConfigurationError(
                f"refinement_rounds must be >= 0, got {self.refinement_rounds}"
            )
        if not 0.0 <= self.min_fitness_threshold <= 1.0:
            raise ConfigurationError(
                f"min_fitness_threshold must be in [0, 1], got {self.min_fitness_threshold}"
            )
        if self.top_n < 1 or self.status_top_n < 1:
            raise ConfigurationError("top_n and status_top_n must be >= 1")

    # === Factory methods for common presets ===

    @classmethod
    def for_quick_test(cls) -> 'SearchConfig':
        """Small budget, single refinement round."""
        return cls(max_generations=3, evaluations_per_agent=1, refinement_rounds=1)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SearchConfig':
        """Build from a mapping; unknown keys are ignored with a warning."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown search config keys: {unknown}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Union[str, Path]) -> SearchConfig:
    """
    Load a SearchConfig from a JSON file.

    The file may be flat or hold the fields under a "search" section.

    Raises:
        ConfigurationError: file missing, not JSON, or invalid values
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read search config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Search config {path} must be a JSON object")

    section: Optional[Dict[str, Any]] = data.get("search")
    return SearchConfig.from_dict(section if isinstance(section, dict) else data)
