"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                              BASE AGENT                                      ║
║                                                                              ║
║   Base class for agents that talk to the oracle.                             ║
║   Holds the system prompt, forwards structured requests, keeps stats.        ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional, Dict, Any
from abc import ABC, abstractmethod
import logging

from ..core.prompts import SYSTEM_PROMPT
from ..llm.client import Oracle

logger = logging.getLogger(__name__)


class BaseAgent(ABC):
    """
    Base class for oracle-backed agents.

    Each agent has:
    - An oracle (anything implementing the Oracle protocol)
    - A system prompt
    - Call statistics
    """

    AGENT_NAME: str = "BaseAgent"

    def __init__(self, oracle: Oracle, system_prompt: Optional[str] = None):
        """
        Args:
            oracle: Generative oracle
            system_prompt: Override the default system framing
        """
        self._oracle = oracle
        self._system_prompt = system_prompt or SYSTEM_PROMPT

        self.stats = {
            "calls": 0,
            "successes": 0,
            "failures": 0,
        }

        logger.info(f"Initialized {self.AGENT_NAME} with {type(oracle).__name__}")

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @abstractmethod
    async def process(self, *args, **kwargs) -> Any:
        """Run the agent's task."""

    async def generate_json(self, prompt: str) -> Dict[str, Any]:
        """
        Structured request to the oracle.

        Raises:
            Exception: whatever the oracle raised (counted as a failure)
        """
        self.stats["calls"] += 1

        try:
            result = await self._oracle.complete_structured(prompt, self._system_prompt)
        except Exception as e:
            self.stats["failures"] += 1
            logger.warning(f"{self.AGENT_NAME} structured request failed: {e}")
            raise

        self.stats["successes"] += 1
        return result

    def get_stats(self) -> Dict[str, Any]:
        return {"agent": self.AGENT_NAME, **self.stats}
