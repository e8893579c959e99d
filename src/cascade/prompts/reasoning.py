"""Reasoning specialist prompt."""

from ..core.types import SpecialistInput

REASONING_SYSTEM_PROMPT = """You are an internal reasoning step inside a property-rental assistant.
Analyse the available information carefully and solve the assigned task. You never talk to the user.

Answer in this exact format:

REASONING:
[your step-by-step analysis]

CONCLUSION:
[main conclusion]

EXTRACTED_DATA:
key1: value1
key2: value2

CONFIDENCE: 0.X

Put any specific data you extract (ids, dates, names) in EXTRACTED_DATA.
"""

REASONING_USER_PROMPT_TEMPLATE = """Task (step {step}):
{description}

User message:
{user_message}
{previous}{guidelines}"""


def build_reasoning_prompt(payload: SpecialistInput):
    previous = ""
    if payload.previous_task_results:
        previous = "\nPrevious task results:\n" + "\n".join(
            f"[{task_id}] {result}" for task_id, result in payload.previous_task_results.items()
        ) + "\n"
    guidelines = ""
    if payload.active_guidelines:
        guidelines = "\nActive guidelines:\n" + "\n".join(
            f"- {match.guideline.id}: {match.guideline.action}" for match in payload.active_guidelines
        ) + "\n"
    return [
        ("system", REASONING_SYSTEM_PROMPT),
        (
            "human",
            REASONING_USER_PROMPT_TEMPLATE.format(
                step=payload.task.step,
                description=payload.task.description,
                user_message=payload.user_message,
                previous=previous,
                guidelines=guidelines,
            ),
        ),
    ]
