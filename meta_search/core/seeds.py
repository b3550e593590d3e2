"""
Baseline design library.

Loaded into an empty (or unreadable) archive so the first ranking round has
something to rank. Order and content are fixed; starting fitness is a prior
with count=0, so the first real observation replaces it entirely.
"""

from typing import List

from .design import Design, Fitness, SeedId, SEED_GENERATION, utc_now_iso


_CHAIN_OF_THOUGHT = """
async function forward(task, context) {
  const instruction = "Please think step by step and then solve the task.";
  const response = await context.llm.complete({
    prompt: instruction + "\\n\\nTask: " + task.description,
    outputFields: ["thinking", "answer"]
  });
  return response.answer;
}"""

_SELF_CONSISTENCY = """
async function forward(task, context) {
  const instruction = "Think step by step and solve the task.";
  const answers = [];
  for (let i = 0; i < 3; i++) {
    const response = await context.llm.complete({
      prompt: instruction + "\\n\\nTask: " + task.description,
      outputFields: ["answer"],
      temperature: 0.8
    });
    answers.push(response.answer);
  }
  const votes = {};
  for (const a of answers) {
    votes[a] = (votes[a] || 0) + 1;
  }
  return Object.entries(votes).sort((x, y) => y[1] - x[1])[0][0];
}"""

_REFLEXION = """
async function forward(task, context) {
  const first = await context.llm.complete({
    prompt: "Solve this task: " + task.description,
    outputFields: ["answer"]
  });
  const review = await context.llm.complete({
    prompt: "Review this answer and identify any errors or improvements:\\n" +
            "Task: " + task.description + "\\n" +
            "Answer: " + first.answer,
    outputFields: ["critique", "improved_answer"]
  });
  return review.improved_answer || first.answer;
}"""

_TOOL_AUGMENTED = """
async function forward(task, context) {
  const plan = await context.llm.complete({
    prompt: "Analyze this task. Do you need external tools (search, calculate, code)?\\n" +
            "Task: " + task.description,
    outputFields: ["needs_tools", "tool_type", "reasoning"]
  });
  if (plan.needs_tools && context.tools[plan.tool_type]) {
    const toolResult = await context.tools[plan.tool_type](task);
    const response = await context.llm.complete({
      prompt: "Using this tool result, answer the task:\\n" +
              "Task: " + task.description + "\\n" +
              "Tool result: " + toolResult,
      outputFields: ["answer"]
    });
    return response.answer;
  }
  const direct = await context.llm.complete({
    prompt: "Solve: " + task.description,
    outputFields: ["answer"]
  });
  return direct.answer;
}"""


# (name, rationale, body, prior mean)
BASELINE_LIBRARY = [
    (
        "Chain-of-Thought",
        "Break down complex problems into step-by-step reasoning before answering.",
        _CHAIN_OF_THOUGHT,
        0.50,
    ),
    (
        "Self-Consistency",
        "Generate multiple reasoning paths and take majority vote for robustness.",
        _SELF_CONSISTENCY,
        0.55,
    ),
    (
        "Reflexion",
        "Iteratively refine answer through self-critique and improvement.",
        _REFLEXION,
        0.58,
    ),
    (
        "Tool-Augmented",
        "Use external tools when appropriate to enhance reasoning.",
        _TOOL_AUGMENTED,
        0.52,
    ),
]

# Half-width of the prior interval given to every seed
PRIOR_HALF_WIDTH = 0.10


def baseline_designs() -> List[Design]:
    """Fresh copies of the baseline library, ids baseline-0..N-1."""
    created_at = utc_now_iso()
    designs = []

    for index, (name, rationale, body, prior) in enumerate(BASELINE_LIBRARY):
        designs.append(Design(
            id=SeedId(index),
            name=name,
            rationale=rationale,
            body=body,
            generation=SEED_GENERATION,
            fitness=Fitness(
                mean=prior,
                lower=round(max(0.0, prior - PRIOR_HALF_WIDTH), 2),
                upper=round(min(1.0, prior + PRIOR_HALF_WIDTH), 2),
                count=0,
            ),
            created_at=created_at,
        ))

    return designs
