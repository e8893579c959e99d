"""Writer prompt templates and builders."""

from ..core.types import WorkerResult, WriterInput
from .worker import history_messages

WRITER_SYSTEM_PROMPT = """You write the final reply of a property-rental assistant to the user.

Rules:
- Friendly, professional tone, like a real agent. Never say you are an assistant or an AI.
- Concise replies. Use Markdown images as ![description](url).
- Only state facts that come from the worker results, the context or the conversation.
- Never expose owner phone numbers, exact addresses, or internal property/visit ids.
- If a worker result contains [ASK_TO_USER], ask the user that question naturally and stop there.
- If a worker failed, do not pretend the action happened; offer to try again.
"""

WRITER_CONTEXT_TEMPLATE = """Active guidelines:
{guidelines}

Plan reasoning: {plan_reasoning}

Worker results:
{worker_results}
{glossary}{rag}{variables}"""


def _format_worker_result(result: WorkerResult) -> str:
    header = f"- {result.worker_id} [{result.status}, score {result.validation.score:.1f}]"
    if result.status != "success":
        return f"{header}: failed ({result.error or 'no response'})"
    return f"{header}:\n{result.response}" if result.response else f"{header}: (no output)"


def build_writer_messages(payload: WriterInput):
    guidelines = "\n".join(
        f"- {match.guideline.id}: {match.guideline.action}" for match in payload.active_guidelines
    ) or "none"
    worker_results = "\n".join(_format_worker_result(result) for result in payload.worker_results) or "none"
    glossary = f"\nGlossary:\n{payload.glossary_context}\n" if payload.glossary_context else ""
    rag = f"\nDocument context:\n{payload.rag_context}\n" if payload.rag_context else ""
    variables = ""
    if payload.context_variables:
        variables = "\nContext variables:\n" + "\n".join(
            f"- {key}: {value}" for key, value in payload.context_variables.items()
        ) + "\n"
    context = WRITER_CONTEXT_TEMPLATE.format(
        guidelines=guidelines,
        plan_reasoning=payload.plan.reasoning or "N/A",
        worker_results=worker_results,
        glossary=glossary,
        rag=rag,
        variables=variables,
    )
    messages = [("system", WRITER_SYSTEM_PROMPT), ("system", context)]
    messages.extend(history_messages(payload.messages))
    if not payload.messages or payload.messages[-1].content != payload.user_message:
        messages.append(("human", payload.user_message))
    return messages
