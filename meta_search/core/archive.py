"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                           DESIGN ARCHIVE                                     ║
║                                                                              ║
║   Durable, ordered population of every design ever produced.                 ║
║   • Append-only: designs are retired, never removed                          ║
║   • Every mutation is followed by a full-document write                      ║
║   • Unreadable storage heals itself by reseeding the baseline library        ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional, List, Dict, Union
from pathlib import Path
import logging
import time

from .design import Design, Candidate, Fitness, GeneratedId, parse_design_id, utc_now_iso
from .fitness import FitnessTracker
from .prompts import build_archive_prompt, select_top
from .seeds import baseline_designs
from .storage import JsonArchiveStorage
from ..config import FitnessPolicy

logger = logging.getLogger(__name__)

ARCHIVE_FILENAME = "archive.json"


class DesignArchive:
    """
    Archive of designs with fitness statistics.

    USAGE:
        archive = DesignArchive("data/meta-agent-search/archive.json")
        archive.initialize()

        design = archive.add(candidate, generation=1)
        archive.update_fitness(design.id, 0.64)
        best = archive.get_top_performing(5)

    Single writer: callers that share an archive across tasks must serialize
    `add` / `update_fitness` themselves.
    """

    def __init__(
        self,
        storage: Union[str, Path, JsonArchiveStorage],
        fitness_policy: Optional[FitnessPolicy] = None,
        top_n: int = 5,
    ):
        """
        Args:
            storage: Storage object, or path of the archive JSON file
            fitness_policy: Interval / retirement parameters
            top_n: Designs rendered by build_prompt()
        """
        if isinstance(storage, (str, Path)):
            storage = JsonArchiveStorage(storage)
        self.storage = storage
        self.tracker = FitnessTracker(fitness_policy)
        self.top_n = top_n

        self._designs: List[Design] = []
        self._index: Dict[str, Design] = {}
        self._last_sequence: Dict[int, int] = {}

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self):
        """
        Load the persisted archive, or seed and persist a fresh one.

        Missing, unreadable or malformed documents are never reported to the
        caller; only a failing write of the reseeded archive propagates.
        """
        try:
            document = self.storage.read()
        except (OSError, ValueError) as e:
            logger.warning(f"Archive at {self.storage} is unreadable ({e}), reseeding")
            document = None

        designs = self._parse_document(document) if document is not None else None

        if designs is None:
            self._reseed()
            return

        self._set_designs(designs)
        logger.info(f"Archive loaded: {len(designs)} designs ({len(self.get_enabled())} enabled)")

    def _parse_document(self, document) -> Optional[List[Design]]:
        agents = document.get("agents") if isinstance(document, dict) else None
        if not isinstance(agents, list):
            logger.warning(f"Archive at {self.storage} has no 'agents' list, reseeding")
            return None

        try:
            designs = [Design.from_dict(record) for record in agents]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Archive at {self.storage} has an invalid record ({e}), reseeding")
            return None

        ids = [str(d.id) for d in designs]
        if len(set(ids)) != len(ids):
            logger.warning(f"Archive at {self.storage} has duplicate ids, reseeding")
            return None

        return designs

    def _reseed(self):
        self._set_designs(baseline_designs())
        logger.info(f"Archive seeded with {len(self._designs)} baseline designs")
        self.save()

    def _set_designs(self, designs: List[Design]):
        self._designs = list(designs)
        self._index = {str(d.id): d for d in self._designs}
        self._last_sequence = {}
        for d in self._designs:
            if isinstance(d.id, GeneratedId):
                last = self._last_sequence.get(d.id.generation, -1)
                self._last_sequence[d.id.generation] = max(last, d.id.sequence)

    def save(self):
        """Write the full archive. Raises StorageError on failure."""
        self.storage.write({"agents": [d.to_dict() for d in self._designs]})

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def _next_id(self, generation: int) -> GeneratedId:
        """Millisecond clock, bumped so no (generation, sequence) pair repeats."""
        sequence = int(time.time() * 1000)
        last = self._last_sequence.get(generation)
        if last is not None and sequence <= last:
            sequence = last + 1
        self._last_sequence[generation] = sequence
        return GeneratedId(generation, sequence)

    def add(
        self,
        candidate: Candidate,
        generation: int,
        run_id: Optional[str] = None,
    ) -> Design:
        """Append a freshly generated design and persist."""
        if isinstance(generation, bool) or not isinstance(generation, int) or generation < 1:
            raise ValueError(f"Generation must be a positive int, got {generation!r}")

        design = Design(
            id=self._next_id(generation),
            name=candidate.name,
            rationale=candidate.rationale,
            body=candidate.body,
            generation=generation,
            fitness=Fitness(),
            created_at=utc_now_iso(),
            enabled=True,
            run_id=run_id,
        )

        self._designs.append(design)
        self._index[str(design.id)] = design
        self.save()

        logger.debug(f"Added design {design.id}: {design.name}")
        return design

    def update_fitness(self, design_id, observed_accuracy: float) -> Optional[Design]:
        """
        Record one evaluation of a design.

        Unknown ids are a silent no-op (returns None). Retirement is one-way:
        a retired design stays retired whatever later observations say.
        """
        design = self.get(design_id)
        if design is None:
            return None

        design.fitness = self.tracker.observe(design.fitness, observed_accuracy)

        if design.enabled and self.tracker.should_retire(design.fitness):
            design.enabled = False
            logger.info(
                f"Retired {design.name} [{design.id}]: mean={design.fitness.mean:.3f} "
                f"after {design.fitness.count} evaluations"
            )

        self.save()
        return design

    # =========================================================================
    # VIEWS
    # =========================================================================

    def get(self, design_id) -> Optional[Design]:
        try:
            key = str(parse_design_id(design_id))
        except ValueError:
            return None
        return self._index.get(key)

    def get_all(self) -> List[Design]:
        return list(self._designs)

    def get_enabled(self) -> List[Design]:
        return [d for d in self._designs if d.enabled]

    def get_top_performing(self, n: int = 5) -> List[Design]:
        return select_top(self._designs, n)

    def build_prompt(self) -> str:
        return build_archive_prompt(self.get_enabled(), self.top_n)

    def __len__(self) -> int:
        return len(self._designs)

    def __contains__(self, design_id) -> bool:
        return self.get(design_id) is not None
