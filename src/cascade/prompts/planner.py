"""Classification and planning prompt templates and builders."""

from typing import Sequence

from ..core.types import ChatMessage, ClassificationResult, GuidelineMatch, WorkerDefinition

CLASSIFIER_SYSTEM_PROMPT = """You classify incoming messages for a property-rental assistant.
Decide whether the message requires executing actions (tools) or only a text reply.

requires_action examples:
- Searching properties with specific criteria
- Scheduling, cancelling or rescheduling visits
- Checking property availability
- Escalating to the owner or a human agent
- Saving user feedback

text_only examples:
- Simple greetings
- General questions about the service
- Thanks or goodbyes
- Clarification requests with no property context
"""

CLASSIFIER_USER_PROMPT_TEMPLATE = """User message:
{user_message}

Recent conversation:
{history}

Active guidelines:
{guidelines}

Classify the user message.
"""

PLANNER_SYSTEM_PROMPT = """You plan actions for a property-rental assistant.
Break the user message into SEQUENTIAL steps executed by specialized workers.

Task types:
- reasoning: internal analysis or deduction; no worker.
- context_search: look up information in the conversation history or context; no worker.
- worker_call: run one specific worker; requires a valid worker_id from the list below.
- ask_to_user: information is missing and only the user can provide it; set question_for_user.

Rules:
- Only use worker_call when a worker really has to act.
- Use depends_on to list task ids that must finish first; only reference earlier tasks.
- Descriptions must be clear and natural, explaining WHAT to do.
- Set critical_path=true only when a failed worker makes any reply misleading.

Example: "was the visit booked for the 30th or the 1st, and are there other pet-friendly options in Pacheco?"
- task_1 (context_search): find which visit the user refers to and extract its id
- task_2 (reasoning, depends on task_1): determine the exact visit id and the dates mentioned
- task_3 (worker_call visit_worker, depends on task_2): check the status of that visit
- task_4 (worker_call search_worker): search pet-friendly properties in Pacheco
"""

PLANNER_USER_PROMPT_TEMPLATE = """Classification: {classification} (confidence {confidence:.2f})
Reason: {reasoning}
Intents: {intents}

User message:
{user_message}

Active guidelines:
{guidelines}

Available workers:
{workers}

Generate the action plan for the workers.
"""


def _truncate(text: str, limit: int = 200) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _format_history(messages: Sequence[ChatMessage]) -> str:
    recent = list(messages)[-5:]
    if not recent:
        return "N/A"
    return "\n".join(f"{message.role}: {_truncate(message.content)}" for message in recent)


def _format_guidelines(active_guidelines: Sequence[GuidelineMatch], *, detailed: bool) -> str:
    if not active_guidelines:
        return "none"
    lines = []
    for match in active_guidelines:
        guideline = match.guideline
        tools = ", ".join(sorted(guideline.tool_names)) or "none"
        lines.append(f"- {guideline.id} (score {match.score:.2f}, tools: {tools})")
        if detailed:
            lines.append(f"  condition: {guideline.condition}")
            lines.append(f"  action: {guideline.action}")
    return "\n".join(lines)


def _format_workers(workers: Sequence[WorkerDefinition], active_ids: set[str]) -> str:
    lines = []
    for worker in workers:
        lines.append(f"- {worker.id} [{'active' if worker.id in active_ids else 'inactive'}]: {worker.name}")
        lines.append(f"  description: {worker.description}")
        lines.append(f"  guidelines: {', '.join(sorted(worker.associated_guideline_ids))}")
        lines.append(f"  tools: {', '.join(sorted(worker.tool_names))}")
    return "\n".join(lines) or "none"


def build_classification_prompt(
    user_message: str,
    messages: Sequence[ChatMessage],
    active_guidelines: Sequence[GuidelineMatch],
):
    return [
        ("system", CLASSIFIER_SYSTEM_PROMPT),
        (
            "human",
            CLASSIFIER_USER_PROMPT_TEMPLATE.format(
                user_message=user_message,
                history=_format_history(messages),
                guidelines=_format_guidelines(active_guidelines, detailed=False),
            ),
        ),
    ]


def build_planning_prompt(
    user_message: str,
    classification: ClassificationResult,
    active_guidelines: Sequence[GuidelineMatch],
    workers: Sequence[WorkerDefinition],
    active_worker_ids: set[str],
):
    return [
        ("system", PLANNER_SYSTEM_PROMPT),
        (
            "human",
            PLANNER_USER_PROMPT_TEMPLATE.format(
                classification=classification.classification,
                confidence=classification.confidence,
                reasoning=classification.reasoning,
                intents=", ".join(classification.detected_intents) or "none",
                user_message=user_message,
                guidelines=_format_guidelines(active_guidelines, detailed=True),
                workers=_format_workers(workers, active_worker_ids),
            ),
        ),
    ]
