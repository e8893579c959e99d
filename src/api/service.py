"""Service adapter that maps API requests to the guideline cascade."""

from __future__ import annotations

import os

from dotenv import load_dotenv

from src.cascade.core.config import CascadeConfig
from src.cascade.core.orchestrator import CascadeOrchestrator
from src.cascade.core.types import ChatMessage, Conversation, Guideline, ValidationCriterion
from src.cascade.guidelines import DEFAULT_GUIDELINES, GuidelineMatcher, GuidelineStore
from src.cascade.tools import ToolRegistry, missing_tool_names
from src.cascade.workers import DEFAULT_WORKER_REGISTRY

from .schemas import (
    CriterionModel,
    GuidelineListResponse,
    GuidelineModel,
    HealthResponse,
    MessageRequest,
    MessageResponse,
    WorkerSummary,
)


class BackendNotConfiguredError(RuntimeError):
    """Raised when a message arrives but no generation backend is configured."""


def guideline_from_model(payload: GuidelineModel) -> Guideline:
    return Guideline(
        id=payload.id,
        condition=payload.condition,
        action=payload.action,
        priority=payload.priority,
        difficulty=payload.difficulty,
        tags=frozenset(payload.tags),
        tool_names=frozenset(payload.tool_names),
        scope=payload.scope,
        enabled=payload.enabled,
        validation_criteria=tuple(
            ValidationCriterion(
                name=criterion.name,
                description=criterion.description,
                weight=criterion.weight,
                examples=tuple(criterion.examples),
            )
            for criterion in payload.validation_criteria
        ),
    )


def guideline_to_model(guideline: Guideline) -> GuidelineModel:
    return GuidelineModel(
        id=guideline.id,
        condition=guideline.condition,
        action=guideline.action,
        priority=guideline.priority,
        difficulty=guideline.difficulty,
        tags=sorted(guideline.tags),
        tool_names=sorted(guideline.tool_names),
        scope=guideline.scope,
        enabled=guideline.enabled,
        validation_criteria=[
            CriterionModel(
                name=criterion.name,
                description=criterion.description,
                weight=criterion.weight,
                examples=list(criterion.examples),
            )
            for criterion in guideline.validation_criteria
        ],
    )


class CascadeAPIService:
    """Thin service to keep FastAPI handlers small and testable."""

    def __init__(
        self,
        config: CascadeConfig | None = None,
        tools: ToolRegistry | None = None,
        matcher: GuidelineMatcher | None = None,
        orchestrator: CascadeOrchestrator | None = None,
    ):
        load_dotenv()
        self.config = config or CascadeConfig.from_env()
        self.tools = tools or ToolRegistry()
        self.matcher = matcher or GuidelineMatcher(self.config, GuidelineStore(DEFAULT_GUIDELINES))
        self._orchestrator = orchestrator

    @property
    def model_configured(self) -> bool:
        return self._orchestrator is not None or bool(os.getenv("OPENAI_API_KEY"))

    def health(self) -> HealthResponse:
        required = set()
        for definition in DEFAULT_WORKER_REGISTRY.enabled():
            required |= definition.tool_names
        missing = missing_tool_names(self.tools, required)
        guideline_count = len(self.matcher.store.enabled())
        if not self.model_configured:
            return HealthResponse(
                status="degraded",
                model_configured=False,
                guideline_count=guideline_count,
                missing_tools=missing,
                message="OPENAI_API_KEY is not set",
            )
        return HealthResponse(
            status="ok",
            model_configured=True,
            guideline_count=guideline_count,
            missing_tools=missing,
            message="ready",
        )

    def list_guidelines(self) -> GuidelineListResponse:
        store = self.matcher.store
        return GuidelineListResponse(
            version=store.version,
            guidelines=[guideline_to_model(guideline) for guideline in store.snapshot()],
        )

    def add_guideline(self, payload: GuidelineModel) -> GuidelineListResponse:
        self.matcher.add_guideline(guideline_from_model(payload))
        return self.list_guidelines()

    def handle_message(self, payload: MessageRequest) -> MessageResponse:
        orchestrator = self._get_orchestrator()
        messages = [ChatMessage(role=turn.role, content=turn.content) for turn in payload.history]
        messages.append(ChatMessage(role="user", content=payload.message))

        matches = self.matcher.match(
            Conversation(session_id=payload.session_id, messages=messages),
            threshold=payload.threshold,
        )
        result = orchestrator.execute(
            payload.message,
            messages,
            matches,
            glossary_context=payload.glossary_context,
            rag_context=payload.rag_context,
        )
        metadata = result.metadata
        return MessageResponse(
            success=result.success,
            response=result.response,
            classification=metadata.classification.classification,
            matched_guidelines=[match.guideline.id for match in matches],
            workers=[
                WorkerSummary(
                    worker_id=worker.worker_id,
                    status=worker.status,
                    score=worker.validation.score,
                    iterations=worker.validation.iterations,
                    tools=[tool.tool_name for tool in worker.tools_executed],
                    error=worker.error,
                )
                for worker in metadata.worker_results
            ],
            style_validation_passed=metadata.style_validation_passed,
            total_execution_time_ms=metadata.total_execution_time_ms,
            final_state=result.trace.get("final_state"),
            error=result.error,
            trace=result.trace,
        )

    def _get_orchestrator(self) -> CascadeOrchestrator:
        if self._orchestrator is None:
            if not self.model_configured:
                raise BackendNotConfiguredError("OPENAI_API_KEY is not set.")
            self._orchestrator = CascadeOrchestrator.build(self.config, self.tools)
        return self._orchestrator
