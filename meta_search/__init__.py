"""
Meta Agent Search - archive-based evolution of agent designs.

An oracle proposes designs, bounded self-critique refines them, an external
evaluator scores them, and a persistent archive ranks everything found so far.
"""

from .config import SearchConfig, FitnessPolicy, load_config
from .exceptions import (
    MetaSearchError,
    ConfigurationError,
    OracleError,
    OracleTransportError,
    OracleResponseError,
    StorageError,
)
from .core import (
    Design,
    Fitness,
    Candidate,
    SeedId,
    GeneratedId,
    DesignArchive,
    FitnessTracker,
    EvaluationResult,
    Evaluator,
)
from .llm import Oracle, OllamaOracle
from .agents import CandidateGenerator
from .search import MetaAgentSearch, SearchStatus

__version__ = "0.1.0"

__all__ = [
    "SearchConfig",
    "FitnessPolicy",
    "load_config",
    "MetaSearchError",
    "ConfigurationError",
    "OracleError",
    "OracleTransportError",
    "OracleResponseError",
    "StorageError",
    "Design",
    "Fitness",
    "Candidate",
    "SeedId",
    "GeneratedId",
    "DesignArchive",
    "FitnessTracker",
    "EvaluationResult",
    "Evaluator",
    "Oracle",
    "OllamaOracle",
    "CandidateGenerator",
    "MetaAgentSearch",
    "SearchStatus",
]
