"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                           META AGENT SEARCH                                  ║
║                                                                              ║
║   Drives successive generations over the design archive:                     ║
║       propose → refine → store → evaluate → update fitness                   ║
║                                                                              ║
║   Generations are strictly sequential: each one ranks the archive as the     ║
║   previous one left it. Oracle and evaluation failures cost one generation,  ║
║   storage failures stop the search.                                          ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional, Dict, Any, List, Callable, Sequence, Union
from dataclasses import dataclass, field
from pathlib import Path
import inspect
import logging
import math
import numbers
import uuid

from .agents.generator import CandidateGenerator
from .config import SearchConfig, FitnessPolicy
from .core.archive import DesignArchive, ARCHIVE_FILENAME
from .core.design import Design
from .core.evaluation import Evaluator, EvaluationResult
from .llm.client import Oracle

logger = logging.getLogger(__name__)

ARCHIVE_DIRNAME = "meta-agent-search"

ProgressCallback = Callable[[int, Design], Any]


# =============================================================================
# STATUS
# =============================================================================

@dataclass
class SearchStatus:
    """Read-only snapshot of the search for reporting."""
    total: int
    enabled: int
    generation: int
    run_id: str
    top: List[Design] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "enabled": self.enabled,
            "generation": self.generation,
            "run_id": self.run_id,
            "top": [d.to_dict() for d in self.top],
        }

    def to_markdown(self) -> str:
        lines = [
            "## Meta Agent Search Status",
            "",
            f"- **Total agents**: {self.total}",
            f"- **Enabled**: {self.enabled}",
            f"- **Generation**: {self.generation}",
            "",
        ]

        if self.top:
            lines.append("### Top Performing Agents")
            lines.append("")
            for d in self.top:
                lines.append(f"**{d.name}** (gen {d.generation})")
                lines.append(
                    f"- Fitness: {d.fitness.mean:.2f} "
                    f"[{d.fitness.lower:.2f}, {d.fitness.upper:.2f}]"
                )
                lines.append(f"- Evaluations: {d.fitness.count}")
                lines.append(f"- Rationale: {d.rationale}")
                lines.append("")

        return "\n".join(lines)


# =============================================================================
# SEARCH
# =============================================================================

class MetaAgentSearch:
    """
    Archive-based meta search over agent designs.

    USAGE:
        async with OllamaOracle() as oracle:
            search = MetaAgentSearch("data", oracle, evaluator)
            discovered = await search.run_search(tasks)
            print(search.get_status().to_markdown())

    The generation counter lives only as long as this instance; designs
    from earlier processes keep their generation numbers, and `run_id`
    tells the runs apart.
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        oracle: Oracle,
        evaluator: Evaluator,
        config: Optional[SearchConfig] = None,
        fitness_policy: Optional[FitnessPolicy] = None,
    ):
        """
        Args:
            data_dir: Root data directory; the archive lives in
                      data_dir/meta-agent-search/archive.json
            oracle: Generative oracle
            evaluator: Task runner
            config: Search configuration (defaults if None)
            fitness_policy: Confidence / retirement parameters
        """
        self.config = config or SearchConfig()
        self.evaluator = evaluator
        self.run_id = uuid.uuid4().hex[:12]
        self.generation = 0

        archive_path = Path(data_dir) / ARCHIVE_DIRNAME / ARCHIVE_FILENAME
        self.archive = DesignArchive(archive_path, fitness_policy, top_n=self.config.top_n)
        self.archive.initialize()

        self.generator = CandidateGenerator(
            oracle,
            self.archive,
            refinement_rounds=self.config.refinement_rounds,
        )

        logger.info(
            f"MetaAgentSearch initialized (run={self.run_id}, "
            f"archive={len(self.archive)} designs, "
            f"max_generations={self.config.max_generations})"
        )

    async def run_generation(self) -> Optional[Design]:
        """One propose → refine → store round. None if the oracle failed."""
        self.generation += 1
        logger.info(f"Starting generation {self.generation}")

        design = await self.generator.process(self.generation, run_id=self.run_id)
        if design is None:
            logger.info(f"Generation {self.generation} produced no design")
        return design

    async def evaluate_agent(self, design_id, tasks: Sequence[Any]) -> EvaluationResult:
        """
        Evaluate a stored design and fold the accuracy into its fitness.

        Unknown ids, evaluators that raise, and results whose accuracy is not
        a finite number yield a failure result and leave the archive untouched.
        """
        design = self.archive.get(design_id)
        if design is None:
            return EvaluationResult.failure(f"Agent not found: {design_id}")

        # Support both sync and async evaluators
        try:
            result = self.evaluator.evaluate(design.body, tasks)
            if inspect.isawaitable(result):
                result = await result
            if isinstance(result, dict):
                result = EvaluationResult.from_dict(result)
        except Exception as e:
            logger.warning(f"Evaluation of {design.name} [{design.id}] failed: {e}")
            return EvaluationResult.failure(f"Evaluator error: {e}")

        accuracy = result.accuracy
        if (
            isinstance(accuracy, bool)
            or not isinstance(accuracy, numbers.Real)
            or not math.isfinite(accuracy)
        ):
            logger.warning(f"Evaluation of {design.name} [{design.id}] returned accuracy {accuracy!r}")
            return EvaluationResult.failure(f"Invalid accuracy: {accuracy!r}")

        self.archive.update_fitness(design.id, result.accuracy)

        logger.info(
            f"Evaluated {design.name}: accuracy={result.accuracy:.2f} "
            f"(mean={design.fitness.mean:.2f}, n={design.fitness.count})"
        )
        return result

    async def run_search(
        self,
        tasks: Sequence[Any],
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[Design]:
        """
        Run `max_generations` generations.

        Args:
            tasks: Task set handed to the evaluator for every new design
            on_progress: Called with (generation, design) for each discovery;
                         generation is the 1-based counter stored on the design

        Returns:
            Designs whose first evaluation reached min_fitness_threshold
            (possibly empty)
        """
        discovered: List[Design] = []

        for _ in range(self.config.max_generations):
            design = await self.run_generation()
            if design is None:
                continue

            result = await self.evaluate_agent(design.id, tasks)

            if result.accuracy >= self.config.min_fitness_threshold:
                discovered.append(design)
                logger.info(f"Discovered: {design.summary()}")
                if on_progress is not None:
                    on_progress(self.generation, design)

        logger.info(
            f"Search finished: {len(discovered)} discovered, "
            f"archive={len(self.archive)} designs"
        )
        return discovered

    # =========================================================================
    # VIEWS
    # =========================================================================

    def get_archive(self) -> List[Design]:
        return self.archive.get_all()

    def get_top_agents(self, n: int = 5) -> List[Design]:
        return self.archive.get_top_performing(n)

    def get_status(self) -> SearchStatus:
        return SearchStatus(
            total=len(self.archive),
            enabled=len(self.archive.get_enabled()),
            generation=self.generation,
            run_id=self.run_id,
            top=self.archive.get_top_performing(self.config.status_top_n),
        )
