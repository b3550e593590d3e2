"""
Agents - oracle-backed workers of the design search.
"""

from .base import BaseAgent
from .generator import CandidateGenerator

__all__ = ["BaseAgent", "CandidateGenerator"]
