"""
Tests for MetaAgentSearch.

Tests cover:
- run_search scenarios (failing oracle, threshold not met, discoveries)
- evaluate_agent on unknown ids, sync / dict evaluators, raising evaluators
- Generation counter and run provenance
- Status reporting is read-only
"""

import asyncio
import math

import pytest

from meta_search import MetaAgentSearch, SearchConfig
from meta_search.core.evaluation import EvaluationResult
from meta_search.exceptions import OracleTransportError, StorageError

from conftest import EchoOracle, FailingOracle, ConstantEvaluator, ScriptedOracle, design_answer


def run(coro):
    return asyncio.run(coro)


def _search(temp_dir, oracle, evaluator, **config):
    return MetaAgentSearch(temp_dir, oracle, evaluator, config=SearchConfig(**config))


# ══════════════════════════════════════════════════════════════════════════════
# RUN SEARCH
# ══════════════════════════════════════════════════════════════════════════════

class TestRunSearch:

    def test_failing_oracle_discovers_nothing(self, temp_dir):
        search = _search(temp_dir, FailingOracle(), ConstantEvaluator(0.9), max_generations=3)
        before = len(search.get_archive())

        discovered = run(search.run_search(tasks=["t1"]))

        assert discovered == []
        assert len(search.get_archive()) == before
        assert search.generation == 3

    def test_below_threshold_not_discovered(self, temp_dir):
        evaluator = ConstantEvaluator(0.5)
        search = _search(
            temp_dir, EchoOracle(), evaluator,
            max_generations=3, min_fitness_threshold=0.6,
        )

        discovered = run(search.run_search(tasks=["t1"]))

        assert discovered == []
        assert len(search.get_archive()) == 4 + 3
        new = search.get_archive()[4:]
        assert all(d.fitness.count == 1 and d.fitness.mean == pytest.approx(0.5) for d in new)
        assert len(evaluator.bodies) == 3

    def test_discoveries_reported_with_progress(self, temp_dir):
        search = _search(temp_dir, EchoOracle(), ConstantEvaluator(0.8), max_generations=2)
        progress = []

        discovered = run(search.run_search(["t"], on_progress=lambda g, d: progress.append((g, d.id))))

        assert len(discovered) == 2
        assert [g for g, _ in progress] == [1, 2]
        assert [i for _, i in progress] == [d.id for d in discovered]
        assert [d.generation for d in discovered] == [1, 2]

    def test_skipped_generation_still_counts(self, temp_dir):
        # refinement_rounds=0: one oracle call per generation
        oracle = ScriptedOracle([OracleTransportError("down"), design_answer("Later")])
        search = _search(
            temp_dir, oracle, ConstantEvaluator(0.9),
            max_generations=2, refinement_rounds=0,
        )

        discovered = run(search.run_search(["t"]))

        assert [d.name for d in discovered] == ["Later"]
        assert discovered[0].generation == 2

    @pytest.mark.parametrize("error", [
        ConnectionError("refused"),
        RuntimeError("client closed"),
        asyncio.TimeoutError(),
    ])
    def test_foreign_oracle_errors_absorbed(self, temp_dir, error):
        oracle = FailingOracle(error)
        search = _search(temp_dir, oracle, ConstantEvaluator(0.9), max_generations=3)

        assert run(search.run_search(["t"])) == []
        assert oracle.calls == 3
        assert len(search.get_archive()) == 4
        assert search.generation == 3

    def test_zero_budget(self, temp_dir):
        search = _search(temp_dir, EchoOracle(), ConstantEvaluator(0.9), max_generations=0)
        assert run(search.run_search(["t"])) == []

    def test_archive_persists_across_instances(self, temp_dir):
        first = _search(temp_dir, EchoOracle(), ConstantEvaluator(0.7), max_generations=2)
        run(first.run_search(["t"]))

        second = _search(temp_dir, EchoOracle(), ConstantEvaluator(0.7), max_generations=1)

        assert len(second.get_archive()) == 6
        assert second.generation == 0
        assert second.run_id != first.run_id
        assert {d.run_id for d in second.get_archive()[4:]} == {first.run_id}
        assert (temp_dir / "meta-agent-search" / "archive.json").exists()


# ══════════════════════════════════════════════════════════════════════════════
# EVALUATE AGENT
# ══════════════════════════════════════════════════════════════════════════════

class SyncDictEvaluator:
    def evaluate(self, body, tasks):
        return {"success": True, "accuracy": 0.25, "errors": [], "duration_ms": 3}


class RaisingEvaluator:
    async def evaluate(self, body, tasks):
        raise RuntimeError("sandbox crashed")


class TestEvaluateAgent:

    def test_unknown_id(self, temp_dir):
        search = _search(temp_dir, EchoOracle(), ConstantEvaluator(0.9))
        path = temp_dir / "meta-agent-search" / "archive.json"
        before = path.read_text()

        result = run(search.evaluate_agent("gen-1-1", ["t"]))

        assert result.success is False
        assert result.accuracy == 0.0
        assert len(result.errors) == 1
        assert result.duration_ms == 0.0
        assert path.read_text() == before

    def test_updates_fitness(self, temp_dir):
        search = _search(temp_dir, EchoOracle(), ConstantEvaluator(0.9))

        result = run(search.evaluate_agent("baseline-1", ["t"]))

        assert result.accuracy == 0.9
        design = search.archive.get("baseline-1")
        assert design.fitness.count == 1
        assert design.fitness.mean == pytest.approx(0.9)

    def test_sync_dict_evaluator(self, temp_dir):
        search = _search(temp_dir, EchoOracle(), SyncDictEvaluator())

        result = run(search.evaluate_agent("baseline-0", ["t"]))

        assert isinstance(result, EvaluationResult)
        assert result.duration_ms == 3.0
        assert search.archive.get("baseline-0").fitness.mean == pytest.approx(0.25)

    def test_raising_evaluator_absorbed(self, temp_dir):
        search = _search(temp_dir, EchoOracle(), RaisingEvaluator(), max_generations=2)

        result = run(search.evaluate_agent("baseline-0", ["t"]))
        assert not result.success
        assert "sandbox crashed" in result.errors[0]
        assert search.archive.get("baseline-0").fitness.count == 0

        assert run(search.run_search(["t"])) == []
        assert len(search.get_archive()) == 6

    @pytest.mark.parametrize("accuracy", [math.nan, math.inf, None, "0.9"])
    def test_invalid_accuracy_rejected(self, temp_dir, accuracy):
        search = _search(temp_dir, EchoOracle(), ConstantEvaluator(accuracy), max_generations=2)

        result = run(search.evaluate_agent("baseline-0", ["t"]))
        assert not result.success
        assert result.accuracy == 0.0
        assert "Invalid accuracy" in result.errors[0]
        assert search.archive.get("baseline-0").fitness.count == 0

        assert run(search.run_search(["t"])) == []
        assert all(d.fitness.count == 0 for d in search.get_archive())

    def test_storage_failure_not_absorbed(self, temp_dir, monkeypatch):
        search = _search(temp_dir, EchoOracle(), ConstantEvaluator(0.9))

        def broken_write(document):
            raise StorageError("read-only filesystem")

        monkeypatch.setattr(search.archive.storage, "write", broken_write)

        with pytest.raises(StorageError):
            run(search.run_search(["t"]))


# ══════════════════════════════════════════════════════════════════════════════
# STATUS
# ══════════════════════════════════════════════════════════════════════════════

class TestStatus:

    def test_status_snapshot(self, temp_dir):
        search = _search(temp_dir, EchoOracle(), ConstantEvaluator(0.2), max_generations=1)
        run(search.run_search(["t"]))

        status = search.get_status()

        assert status.total == 5
        assert status.enabled == 5
        assert status.generation == 1
        assert [d.name for d in status.top] == ["Reflexion", "Self-Consistency", "Tool-Augmented"]

    def test_status_is_read_only(self, temp_dir):
        search = _search(temp_dir, EchoOracle(), ConstantEvaluator(0.2))
        path = temp_dir / "meta-agent-search" / "archive.json"
        before = path.read_text()

        search.get_status()
        search.get_status().to_markdown()
        search.get_top_agents(2)

        assert path.read_text() == before
        assert len(search.get_archive()) == 4

    def test_markdown_report(self, temp_dir):
        search = _search(temp_dir, EchoOracle(), ConstantEvaluator(0.2))

        report = search.get_status().to_markdown()

        assert "- **Total agents**: 4" in report
        assert "- **Generation**: 0" in report
        assert "**Reflexion** (gen initial)" in report
        assert "- Fitness: 0.58 [0.48, 0.68]" in report
        assert "- Evaluations: 0" in report

    def test_status_dict(self, temp_dir):
        search = _search(temp_dir, EchoOracle(), ConstantEvaluator(0.2))
        data = search.get_status().to_dict()

        assert data["total"] == 4
        assert data["top"][0]["id"] == "baseline-2"
