"""Guideline-matching prompt templates and builders."""

import json
from typing import Sequence

from ..core.types import Conversation, Guideline

MATCHER_SYSTEM_PROMPT = """You are a semantic evaluator that decides which behavior guidelines apply to a conversation.

For EACH guideline:
- Decide whether its CONDITION holds given the recent history, the last user message and any tool results.
- Give a confidence in [0, 1] for how well the condition matches the context.
- Give a short, specific reasoning.
- If a guideline does not apply, set applies=false; confidence may be low.
"""

BATCH_USER_PROMPT_TEMPLATE = """Guidelines to evaluate (evaluate all of them, indices 1 to {count}):
{guidelines}

Recent history:
{summary}

Last message:
{last_message}
{tool_results}
Return one evaluation per guideline with guideline_index (1-based), applies, confidence and reasoning.
"""

SINGLE_USER_PROMPT_TEMPLATE = """Guideline:
- id: {id}
- condition: {condition}
- action: {action}
- priority: {priority}

Recent history:
{summary}

Last message:
{last_message}
{tool_results}
Use high confidence (0.8-1.0) for a clear match, medium (0.5-0.8) for a partial one and low (0-0.5) otherwise.
"""

JSON_ONLY_SUFFIX = """
Reply ONLY with a JSON object, no extra text:
{"applies": true or false, "confidence": number between 0 and 1, "reasoning": "your explanation"}
"""


def _format_tool_results(conversation: Conversation) -> str:
    if not conversation.tool_results:
        return ""
    lines = ["", "Recent tool results:"]
    for idx, record in enumerate(conversation.tool_results, start=1):
        rendered = json.dumps(record.result, ensure_ascii=False, default=str)
        lines.append(f"{idx}. {record.tool_name}: {rendered}")
    return "\n".join(lines) + "\n"


def _format_guideline(index: int, guideline: Guideline) -> str:
    lines = [
        f"[{index}] id={guideline.id}",
        f"    condition: {guideline.condition}",
        f"    action: {guideline.action}",
        f"    priority: {guideline.priority}",
        f"    difficulty: {guideline.difficulty}",
    ]
    if guideline.tags:
        lines.append(f"    tags: {', '.join(sorted(guideline.tags))}")
    return "\n".join(lines)


def build_batch_prompt(batch: Sequence[Guideline], summary: str, conversation: Conversation):
    guidelines = "\n".join(_format_guideline(idx, g) for idx, g in enumerate(batch, start=1))
    return [
        ("system", MATCHER_SYSTEM_PROMPT),
        (
            "human",
            BATCH_USER_PROMPT_TEMPLATE.format(
                count=len(batch),
                guidelines=guidelines,
                summary=summary or "N/A",
                last_message=conversation.last_message or "N/A",
                tool_results=_format_tool_results(conversation),
            ),
        ),
    ]


def build_single_prompt(guideline: Guideline, summary: str, conversation: Conversation, *, json_only: bool = False):
    human = SINGLE_USER_PROMPT_TEMPLATE.format(
        id=guideline.id,
        condition=guideline.condition,
        action=guideline.action,
        priority=guideline.priority,
        summary=summary or "N/A",
        last_message=conversation.last_message or "N/A",
        tool_results=_format_tool_results(conversation),
    )
    if json_only:
        human += JSON_ONLY_SUFFIX
    return [("system", MATCHER_SYSTEM_PROMPT), ("human", human)]
