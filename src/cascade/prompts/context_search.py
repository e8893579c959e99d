"""Context-search specialist prompt."""

from ..core.types import SpecialistInput

HISTORY_WINDOW = 20

CONTEXT_SEARCH_SYSTEM_PROMPT = """You search the conversation history for information another step needs.
Only report what is actually present in the history or in previous task results; never invent ids, dates or properties.

Return:
- summary: what you found, in one or two sentences
- confidence: 0-1, how sure you are the findings answer the task
- found_items: each relevant item with type (message, property, visit, variable or other), content and source
"""

CONTEXT_SEARCH_USER_PROMPT_TEMPLATE = """Search task (step {step}):
{description}

User message:
{user_message}

Conversation history (oldest first):
{history}
{previous}"""


def build_context_search_prompt(payload: SpecialistInput):
    recent = payload.messages[-HISTORY_WINDOW:]
    history = "\n".join(f"[{idx}] {message.role}: {message.content}" for idx, message in enumerate(recent)) or "N/A"
    previous = ""
    if payload.previous_task_results:
        previous = "\nPrevious task results:\n" + "\n".join(
            f"[{task_id}] {result}" for task_id, result in payload.previous_task_results.items()
        ) + "\n"
    return [
        ("system", CONTEXT_SEARCH_SYSTEM_PROMPT),
        (
            "human",
            CONTEXT_SEARCH_USER_PROMPT_TEMPLATE.format(
                step=payload.task.step,
                description=payload.task.description,
                user_message=payload.user_message,
                history=history,
                previous=previous,
            ),
        ),
    ]
