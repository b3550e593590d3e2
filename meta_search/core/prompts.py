"""
Prompt construction for the design oracle.

The archive renders its best enabled designs into a proposal prompt; the
candidate generator adds two fixed self-critique prompts for refinement.
"""

from typing import List, Sequence, Dict, Any
import json


SYSTEM_PROMPT = """You are a helpful assistant that designs AI agent architectures.
You create novel agent designs by writing code that defines how an agent processes tasks.
Make sure to return responses in well-formed JSON."""

# Round 1: distinctiveness + correctness
DISTINCTIVENESS_CRITIQUE = """Review your proposed agent design:
1. Is it interestingly different from the archive agents?
2. Is the implementation correct and complete?
3. Could it plausibly achieve higher fitness?

If you see issues, provide an improved version. Otherwise, confirm the design is good.
Return the design as a JSON object with "name", "rationale" and "body"."""

# Round 2 (and any later round): robustness
ROBUSTNESS_CRITIQUE = """Final review of your agent design:
1. Does the code handle edge cases?
2. Is the logic sound?
3. Would this agent be robust across different task types?

Provide your final agent design as a JSON object with "name", "rationale" and "body"."""

REFINEMENT_PROMPTS = (DISTINCTIVENESS_CRITIQUE, ROBUSTNESS_CRITIQUE)


def select_top(designs: Sequence[Any], n: int = 5) -> List[Any]:
    """Enabled designs by mean fitness, descending; ties keep insertion order."""
    enabled = [d for d in designs if d.enabled]
    return sorted(enabled, key=lambda d: d.fitness.mean, reverse=True)[:n]


def render_design(design: Any) -> str:
    return (
        f"### {design.name} (fitness: {design.fitness.mean:.2f})\n"
        f"Rationale: {design.rationale}\n"
        f"```\n{design.body.strip()}\n```\n"
    )


def build_archive_prompt(designs: Sequence[Any], top_n: int = 5) -> str:
    """Proposal prompt showing the top `top_n` enabled designs."""
    shown = "\n".join(render_design(d) for d in select_top(designs, top_n))

    return f"""# Agent Design Task

You are designing AI agents that solve tasks. Each agent is a forward() function.

## Current Archive of Discovered Agents
{shown or "(the archive is empty)"}

## Your Task
Design a NEW agent that is interestingly different from those in the archive.
- Draw inspiration from ML/AI research literature, not small tweaks of the agents above
- Combine ideas in novel ways
- Ensure the design could plausibly outperform existing agents

## Output Format
Return a JSON object with:
{{
  "name": "Agent Name",
  "rationale": "Reasoning behind this design (1-2 sentences)",
  "body": "async function forward(task, context) {{ ... }}"
}}

Be creative! The best agents often combine multiple techniques in unexpected ways."""


def critique_for_round(round_index: int) -> str:
    """Critique text for a 0-based refinement round."""
    return REFINEMENT_PROMPTS[min(round_index, len(REFINEMENT_PROMPTS) - 1)]


def build_refinement_prompt(design: Dict[str, Any], round_index: int) -> str:
    return (
        f"Current design:\n{json.dumps(design, indent=2)}\n\n"
        f"{critique_for_round(round_index)}"
    )
