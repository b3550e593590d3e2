"""
Evaluator contract.

The core never runs a design. An Evaluator receives the opaque body and a
task list and reports an accuracy, which is taken as ground truth.
"""

from typing import Protocol, List, Dict, Any, Sequence, Union, Awaitable, runtime_checkable
from dataclasses import dataclass, field


@dataclass
class EvaluationResult:
    """Outcome of running one design on a task set."""
    success: bool
    accuracy: float
    errors: List[str] = field(default_factory=list)
    duration_ms: float = 0.0

    @classmethod
    def failure(cls, message: str) -> 'EvaluationResult':
        return cls(success=False, accuracy=0.0, errors=[message], duration_ms=0.0)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvaluationResult':
        return cls(
            success=bool(data.get("success", False)),
            accuracy=float(data.get("accuracy", 0.0)),
            errors=[str(e) for e in data.get("errors", [])],
            duration_ms=float(data.get("duration_ms", data.get("duration", 0.0))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "accuracy": self.accuracy,
            "errors": self.errors,
            "duration_ms": self.duration_ms,
        }


@runtime_checkable
class Evaluator(Protocol):
    """
    Task runner collaborator.

    Implementations may be sync or async and may return an EvaluationResult
    or an equivalent dict.
    """

    def evaluate(
        self,
        body: str,
        tasks: Sequence[Any],
    ) -> Union[EvaluationResult, Awaitable[EvaluationResult]]:
        ...
