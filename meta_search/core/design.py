"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                           DESIGN RECORD                                      ║
║                                                                              ║
║   A Design does NOT know how it runs. The body is an opaque payload whose    ║
║   schema is declared by `body_format`; only the Evaluator executes it.       ║
║                                                                              ║
║   Identity is a tagged variant:                                              ║
║   • SeedId(index)                  → "baseline-{index}"                      ║
║   • GeneratedId(generation, seq)   → "gen-{generation}-{seq}"                ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field
from datetime import datetime, timezone
import re

from ..exceptions import OracleResponseError


SEED_GENERATION = "initial"
DEFAULT_BODY_FORMAT = "forward-js/1"

_SEED_ID_RE = re.compile(r"^baseline-(\d+)$")
_GENERATED_ID_RE = re.compile(r"^gen-(\d+)-(\d+)$")


# =============================================================================
# IDENTITY
# =============================================================================

@dataclass(frozen=True)
class SeedId:
    """Id of a baseline design present before any search ran."""
    index: int

    def __str__(self) -> str:
        return f"baseline-{self.index}"


@dataclass(frozen=True)
class GeneratedId:
    """Id of a design produced by the candidate generator."""
    generation: int
    sequence: int

    def __str__(self) -> str:
        return f"gen-{self.generation}-{self.sequence}"


DesignId = Union[SeedId, GeneratedId]


def parse_design_id(value: Union[str, SeedId, GeneratedId]) -> DesignId:
    """
    Parse the string form of a design id.

    Raises:
        ValueError: if the string matches neither id scheme
    """
    if isinstance(value, (SeedId, GeneratedId)):
        return value

    text = str(value)
    match = _SEED_ID_RE.match(text)
    if match:
        return SeedId(int(match.group(1)))

    match = _GENERATED_ID_RE.match(text)
    if match:
        return GeneratedId(int(match.group(1)), int(match.group(2)))

    raise ValueError(f"Unrecognized design id: {text!r}")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# FITNESS
# =============================================================================

@dataclass(frozen=True)
class Fitness:
    """
    Running accuracy statistics of a design.

    `mean` is the exact average of `count` observations; `lower`/`upper`
    are the confidence bounds, clamped to [0, 1].
    """
    mean: float = 0.0
    lower: float = 0.0
    upper: float = 0.0
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mean": self.mean,
            "lower": self.lower,
            "upper": self.upper,
            "count": self.count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Fitness':
        return cls(
            mean=float(data["mean"]),
            lower=float(data["lower"]),
            upper=float(data["upper"]),
            count=int(data["count"]),
        )


# =============================================================================
# CANDIDATE (oracle output)
# =============================================================================

CANDIDATE_FIELDS = ("name", "rationale", "body")


@dataclass
class Candidate:
    """A proposed design as returned by the oracle: name, rationale, body."""
    name: str
    rationale: str
    body: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "rationale": self.rationale, "body": self.body}

    @classmethod
    def from_dict(cls, data: Any) -> 'Candidate':
        """
        Validate a structured oracle response.

        Raises:
            OracleResponseError: not a mapping, or a field is missing / not a string
        """
        if not isinstance(data, dict):
            raise OracleResponseError(
                f"Expected a JSON object with {list(CANDIDATE_FIELDS)}, got {type(data).__name__}"
            )

        missing = [k for k in CANDIDATE_FIELDS if not isinstance(data.get(k), str)]
        if missing:
            raise OracleResponseError(f"Malformed design, missing or non-string fields: {missing}")

        return cls(name=data["name"], rationale=data["rationale"], body=data["body"])


# =============================================================================
# DESIGN
# =============================================================================

@dataclass
class Design:
    """One candidate agent strategy stored in the archive."""
    id: DesignId
    name: str
    rationale: str
    body: str
    generation: Union[int, str]
    fitness: Fitness = field(default_factory=Fitness)
    created_at: str = field(default_factory=utc_now_iso)
    enabled: bool = True
    body_format: str = DEFAULT_BODY_FORMAT
    run_id: Optional[str] = None

    @property
    def is_seed(self) -> bool:
        return isinstance(self.id, SeedId)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for storage (ids in their string form)."""
        return {
            "id": str(self.id),
            "name": self.name,
            "rationale": self.rationale,
            "body": self.body,
            "body_format": self.body_format,
            "generation": self.generation,
            "fitness": self.fitness.to_dict(),
            "created_at": self.created_at,
            "enabled": self.enabled,
            "run_id": self.run_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Design':
        """
        Deserialize a stored record.

        Raises:
            KeyError, TypeError, ValueError: the record is not a valid design
        """
        generation = data["generation"]
        if generation != SEED_GENERATION:
            generation = int(generation)
            if generation < 1:
                raise ValueError(f"Generation must be positive, got {generation}")

        return cls(
            id=parse_design_id(data["id"]),
            name=str(data["name"]),
            rationale=str(data["rationale"]),
            body=str(data["body"]),
            generation=generation,
            fitness=Fitness.from_dict(data["fitness"]),
            created_at=str(data["created_at"]),
            enabled=bool(data["enabled"]),
            body_format=str(data.get("body_format", DEFAULT_BODY_FORMAT)),
            run_id=data.get("run_id"),
        )

    def summary(self) -> str:
        return (
            f"{self.name} [{self.id}] gen={self.generation} "
            f"fitness={self.fitness.mean:.2f} "
            f"[{self.fitness.lower:.2f}, {self.fitness.upper:.2f}] "
            f"n={self.fitness.count}{'' if self.enabled else ' (retired)'}"
        )
