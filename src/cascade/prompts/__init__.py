"""Prompt builders for matcher, planner, worker and specialist LLM calls."""

from .context_search import build_context_search_prompt
from .matcher import build_batch_prompt, build_single_prompt
from .planner import build_classification_prompt, build_planning_prompt
from .reasoning import build_reasoning_prompt
from .style import build_style_prompt
from .validation import build_validation_prompt
from .worker import build_worker_messages
from .writer import build_writer_messages

__all__ = [
    "build_batch_prompt",
    "build_classification_prompt",
    "build_context_search_prompt",
    "build_planning_prompt",
    "build_reasoning_prompt",
    "build_single_prompt",
    "build_style_prompt",
    "build_validation_prompt",
    "build_worker_messages",
    "build_writer_messages",
]
