"""
CandidateGenerator - proposes one new design per generation.

1. Render the best enabled designs of the archive into a proposal prompt
2. Ask the oracle for {name, rationale, body}
3. Run a fixed number of self-critique rounds over the proposal
4. Store the result in the archive

A failed proposal aborts the generation (nothing is stored). A failed
refinement round only skips that round.
"""

import logging
from typing import Optional

from .base import BaseAgent
from ..core.archive import DesignArchive
from ..core.design import Candidate, Design
from ..core.prompts import build_refinement_prompt
from ..llm.client import Oracle

logger = logging.getLogger(__name__)


class CandidateGenerator(BaseAgent):
    """Propose, refine and store one design."""

    AGENT_NAME = "CandidateGenerator"

    def __init__(
        self,
        oracle: Oracle,
        archive: DesignArchive,
        refinement_rounds: int = 2,
        system_prompt: Optional[str] = None,
    ):
        """
        Args:
            oracle: Generative oracle
            archive: Archive that supplies the prompt and receives the design
            refinement_rounds: Self-critique rounds after the proposal
            system_prompt: Override the default system framing
        """
        super().__init__(oracle, system_prompt)
        self.archive = archive
        self.refinement_rounds = refinement_rounds

    async def propose(self) -> Optional[Candidate]:
        """Initial proposal from the archive prompt; None if the oracle call or its answer fails."""
        try:
            response = await self.generate_json(self.archive.build_prompt())
            return Candidate.from_dict(response)
        except Exception as e:
            logger.warning(f"Design proposal failed: {e}")
            return None

    async def refine(self, candidate: Candidate) -> Candidate:
        """Apply the critique rounds; a failing round keeps the previous design."""
        for round_index in range(self.refinement_rounds):
            prompt = build_refinement_prompt(candidate.to_dict(), round_index)
            try:
                response = await self.generate_json(prompt)
                candidate = Candidate.from_dict(response)
                logger.debug(f"Refinement round {round_index + 1}: {candidate.name}")
            except Exception as e:
                logger.warning(f"Refinement round {round_index + 1} skipped: {e}")

        return candidate

    async def process(self, generation: int, run_id: Optional[str] = None) -> Optional[Design]:
        """
        Produce and store one design tagged with `generation`.

        Returns:
            The stored Design, or None if the proposal failed
        """
        candidate = await self.propose()
        if candidate is None:
            return None

        candidate = await self.refine(candidate)
        logger.info(f"Generated design: {candidate.name}")

        return self.archive.add(candidate, generation=generation, run_id=run_id)
