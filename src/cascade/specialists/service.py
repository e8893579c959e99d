"""Specialist facade for reasoning, context search, composition and style validation."""

from typing import Dict, Optional, Sequence

from langsmith.run_helpers import traceable

from ..core.config import CascadeConfig
from ..core.types import (
    ContextSearchOutput,
    GuidelineMatch,
    ReasoningOutput,
    SpecialistInput,
    StyleResult,
    WriterInput,
    WriterOutput,
)
from .context_search import run_context_search
from .reasoning import run_reasoning
from .style import validate_style
from .writer import compose_reply


class Specialists:
    """Non-worker collaborators of the cascade, each backed by a lazily created chat model."""

    def __init__(self, config: CascadeConfig):
        self.config = config
        self._reasoning_model = None
        self._context_search_model = None
        self._writer_model = None
        self._style_model = None

    @traceable(name="specialists.reason", run_type="llm")
    def reason(self, payload: SpecialistInput) -> ReasoningOutput:
        return run_reasoning(model=self._get_reasoning_model(), payload=payload)

    @traceable(name="specialists.search_context", run_type="llm")
    def search_context(self, payload: SpecialistInput) -> ContextSearchOutput:
        return run_context_search(model=self._get_context_search_model(), payload=payload)

    @traceable(name="specialists.compose", run_type="llm")
    def compose(self, payload: WriterInput) -> WriterOutput:
        return compose_reply(model=self._get_writer_model(), payload=payload)

    @traceable(name="specialists.validate_style", run_type="llm")
    def validate_style(
        self,
        response: str,
        user_message: str,
        active_guidelines: Sequence[GuidelineMatch],
        context_variables: Optional[Dict[str, str]] = None,
    ) -> StyleResult:
        return validate_style(
            model=self._get_style_model(),
            response=response,
            user_message=user_message,
            active_guidelines=active_guidelines,
            context_variables=context_variables,
        )

    def _chat_model(self, model: str, temperature: float):
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(model=model, temperature=temperature, timeout=self.config.request_timeout_seconds)

    def _get_reasoning_model(self):
        if self._reasoning_model is None:
            self._reasoning_model = self._chat_model(self.config.reasoning_model, self.config.reasoning_temperature)
        return self._reasoning_model

    def _get_context_search_model(self):
        if self._context_search_model is None:
            self._context_search_model = self._chat_model(
                self.config.context_search_model,
                self.config.context_search_temperature,
            )
        return self._context_search_model

    def _get_writer_model(self):
        if self._writer_model is None:
            self._writer_model = self._chat_model(self.config.writer_model, self.config.writer_temperature)
        return self._writer_model

    def _get_style_model(self):
        if self._style_model is None:
            self._style_model = self._chat_model(self.config.style_model, self.config.style_temperature)
        return self._style_model
