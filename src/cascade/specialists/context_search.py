"""Context-search specialist backed by structured output."""

from ..core.logging import get_logger
from ..core.schemas import ContextSearchResultOutput
from ..core.types import ContextSearchOutput, FoundItem, SpecialistInput
from ..prompts import context_search as context_search_prompts

logger = get_logger(__name__)


def run_context_search(*, model, payload: SpecialistInput) -> ContextSearchOutput:
    try:
        output = model.with_structured_output(ContextSearchResultOutput).invoke(
            context_search_prompts.build_context_search_prompt(payload)
        )
        if output is None:
            raise ValueError("empty context search output")
    except Exception as exc:
        logger.warning("context search failed for task %s: %s", payload.task.id, exc)
        return ContextSearchOutput(task_id=payload.task.id, success=False, error=str(exc) or "Context search failed")
    return ContextSearchOutput(
        task_id=payload.task.id,
        success=True,
        summary=output.summary,
        confidence=output.confidence,
        found_items=[FoundItem(type=item.type, content=item.content, source=item.source) for item in output.found_items],
    )
