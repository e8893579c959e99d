"""Worker prompt templates, per-worker instructions and message builders."""

import json
from typing import Iterable, Optional, Sequence

from ..core.types import ChatMessage, WorkerDefinition, WorkerExecutionContext

ROLE_MAP = {"user": "human", "assistant": "ai", "system": "system"}

SEARCH_INSTRUCTIONS = (
    "For searches ALWAYS use search_properties with the appropriate filters.",
    "Include EVERY criterion the user mentioned (price, type, location, bedrooms).",
    "Images MUST be Markdown: ![description](url).",
    "If there are no results, suggest alternatives by relaxing the criteria.",
)

VISIT_INSTRUCTIONS = (
    "Check availability with get_availability before proposing or creating a visit.",
    "Never create a visit without a confirmed property and date/time.",
    "For cancellations or reschedules, identify the visit id from the previous task results or the history.",
    "Confirm to the user exactly what was scheduled, cancelled or moved.",
)

SUPPORT_INSTRUCTIONS = (
    "ALWAYS run get_help for sensitive topics.",
    "NEVER answer price negotiation without escalating.",
    "NEVER invent pet policies, guarantees or contract conditions.",
    "Topics that must be escalated: pet policy, price negotiation, special contract conditions, "
    "property modifications, special guarantee requirements, explicit requests to talk to the owner.",
    'After get_help, tell the user: "I am checking [topic] with the owner and will get back to you."',
)

FEEDBACK_INSTRUCTIONS = (
    "Record the user's opinion with log_feedback, including the property or visit it refers to when known.",
    "Thank the user briefly; do not argue with negative feedback.",
)

WORKER_SYSTEM_TEMPLATE = """You are {name} ({worker_id}).
{description}

User message:
{user_message}
{task_block}{previous_block}{guidelines_block}
Available tools: {tools}
{variables_block}
Specific instructions:
{instructions}
{feedback_block}"""


def _task_block(context: WorkerExecutionContext) -> str:
    task = context.task
    if not task.description.strip():
        return ""
    return (
        f"\nAssigned task (step {task.step}, {task.type.value}):\n{task.description}\n"
        "This is your specific task. Complete it following the active guidelines.\n"
    )


def _previous_block(context: WorkerExecutionContext) -> str:
    if not context.previous_task_results:
        return ""
    lines = ["", "Previous task results:"]
    lines.extend(f"[{task_id}] {result}" for task_id, result in context.previous_task_results.items())
    return "\n".join(lines) + "\n"


def _guidelines_block(definition: WorkerDefinition, context: WorkerExecutionContext) -> str:
    relevant = [m for m in context.active_guidelines if m.guideline.id in definition.associated_guideline_ids]
    if not relevant:
        return ""
    lines = ["", "Active guidelines (follow them strictly):"]
    for match in relevant:
        guideline = match.guideline
        lines.append(f"- {guideline.id} (score {match.score:.2f})")
        lines.append(f"  condition: {guideline.condition}")
        lines.append(f"  action: {guideline.action}")
        if guideline.tool_names:
            lines.append(f"  allowed tools: {', '.join(sorted(guideline.tool_names))}")
    return "\n".join(lines) + "\n"


def _variables_block(context: WorkerExecutionContext) -> str:
    if not context.context_variables:
        return ""
    lines = ["Context variables:"]
    lines.extend(f"- {key}: {value}" for key, value in context.context_variables.items())
    return "\n".join(lines) + "\n"


def _feedback_block(feedback: Optional[str]) -> str:
    if not feedback:
        return ""
    return f"\nRequired correction (you MUST apply it):\n{feedback}\n"


def history_messages(messages: Sequence[ChatMessage]):
    return [(ROLE_MAP.get(message.role, "human"), message.content) for message in messages]


def build_worker_messages(
    definition: WorkerDefinition,
    context: WorkerExecutionContext,
    tool_names: Iterable[str],
    instructions: Sequence[str],
    feedback: Optional[str] = None,
):
    system = WORKER_SYSTEM_TEMPLATE.format(
        name=definition.name,
        worker_id=definition.id,
        description=definition.description,
        user_message=context.user_message,
        task_block=_task_block(context),
        previous_block=_previous_block(context),
        guidelines_block=_guidelines_block(definition, context),
        tools=", ".join(sorted(tool_names)) or "none",
        variables_block=_variables_block(context),
        instructions="\n".join(f"- {line}" for line in instructions),
        feedback_block=_feedback_block(feedback),
    )
    messages = [("system", system)]
    messages.extend(history_messages(context.messages))
    if not context.messages or context.messages[-1].content != context.user_message:
        messages.append(("human", context.user_message))
    return messages


def render_tool_result(result) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, ensure_ascii=False, default=str)
