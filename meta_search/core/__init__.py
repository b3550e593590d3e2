"""
Meta-Search Core - archive, fitness statistics and design records.

Nothing in here talks to an oracle; the agents package does that.
"""

from .design import (
    Design,
    Fitness,
    Candidate,
    SeedId,
    GeneratedId,
    DesignId,
    SEED_GENERATION,
    parse_design_id,
)
from .fitness import FitnessTracker, confidence_interval
from .seeds import baseline_designs, BASELINE_LIBRARY
from .storage import JsonArchiveStorage
from .archive import DesignArchive, ARCHIVE_FILENAME
from .evaluation import Evaluator, EvaluationResult

__all__ = [
    # Design
    "Design",
    "Fitness",
    "Candidate",
    "SeedId",
    "GeneratedId",
    "DesignId",
    "SEED_GENERATION",
    "parse_design_id",
    # Fitness
    "FitnessTracker",
    "confidence_interval",
    # Archive
    "baseline_designs",
    "BASELINE_LIBRARY",
    "JsonArchiveStorage",
    "DesignArchive",
    "ARCHIVE_FILENAME",
    # Evaluation
    "Evaluator",
    "EvaluationResult",
]
