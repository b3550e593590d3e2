"""
Shared fixtures and stubs for the meta search tests.
"""

import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from meta_search.core import DesignArchive
from meta_search.core.evaluation import EvaluationResult
from meta_search.exceptions import OracleTransportError


# ══════════════════════════════════════════════════════════════════════════════
# STUBS
# ══════════════════════════════════════════════════════════════════════════════

class ScriptedOracle:
    """Oracle returning scripted answers; Exception instances are raised."""

    def __init__(self, answers: List[Any]):
        self.answers = list(answers)
        self.prompts: List[str] = []
        self.system_prompts: List[Optional[str]] = []

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        raise NotImplementedError

    async def complete_structured(self, prompt: str, system_prompt: Optional[str] = None) -> Dict[str, Any]:
        self.prompts.append(prompt)
        self.system_prompts.append(system_prompt)
        if not self.answers:
            raise OracleTransportError("script exhausted")
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


class FailingOracle:
    """Oracle whose every call fails, by default at the transport level."""

    def __init__(self, error: Optional[Exception] = None):
        self.calls = 0
        self.error = error or OracleTransportError("connection refused")

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        self.calls += 1
        raise self.error

    async def complete_structured(self, prompt: str, system_prompt: Optional[str] = None) -> Dict[str, Any]:
        self.calls += 1
        raise self.error


class EchoOracle:
    """Oracle that always proposes (and confirms) a numbered design."""

    def __init__(self):
        self.calls = 0

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        raise NotImplementedError

    async def complete_structured(self, prompt: str, system_prompt: Optional[str] = None) -> Dict[str, Any]:
        self.calls += 1
        return design_answer(f"Design {self.calls}")


class ConstantEvaluator:
    """Async evaluator returning the same accuracy for every design."""

    def __init__(self, accuracy: float):
        self.accuracy = accuracy
        self.bodies: List[str] = []

    async def evaluate(self, body: str, tasks) -> EvaluationResult:
        self.bodies.append(body)
        return EvaluationResult(success=True, accuracy=self.accuracy, errors=[], duration_ms=1.0)


def design_answer(name: str, rationale: str = "Because.", body: str = "async function forward() {}") -> Dict[str, str]:
    return {"name": name, "rationale": rationale, "body": body}


# ══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_dir():
    """Temporary directory for storage tests."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path)


@pytest.fixture
def archive_path(temp_dir):
    return temp_dir / "nested" / "archive.json"


@pytest.fixture
def seeded_archive(archive_path):
    """Fresh archive holding only the baseline library."""
    archive = DesignArchive(archive_path)
    archive.initialize()
    return archive
