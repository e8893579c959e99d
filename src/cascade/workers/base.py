"""Shared worker contract: activation guard, one attempt, validation, at most one feedback retry."""

import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.messages import ToolMessage
from langsmith.run_helpers import traceable

from ..core.config import CascadeConfig
from ..core.errors import ToolExecutionError, WorkerNotFoundError
from ..core.logging import get_logger
from ..core.parsing import message_text
from ..core.types import (
    ToolExecution,
    ValidationVerdict,
    WorkerDefinition,
    WorkerExecutionContext,
    WorkerIteration,
    WorkerMetadata,
    WorkerResult,
    WorkerStatus,
    WorkerValidation,
)
from ..prompts import worker as worker_prompts
from ..tools.registry import ToolRegistry
from .registry import DEFAULT_WORKER_REGISTRY, WorkerRegistry
from .validation import LightweightValidator

logger = get_logger(__name__)

DEGRADED_SCORE = 5.0


class BaseWorker(ABC):
    """A registry-bound worker.

    Subclasses set ``worker_id`` and implement ``execute_iteration``, usually by
    delegating to ``_generate`` with their own instructions. ``execute`` runs the
    bounded state machine ``attempt -> validate -> (done | retry -> validate -> done)``
    and never raises for runtime failures.
    """

    worker_id: str = ""

    def __init__(
        self,
        config: CascadeConfig,
        tools: ToolRegistry,
        registry: WorkerRegistry = DEFAULT_WORKER_REGISTRY,
        validator: Optional[LightweightValidator] = None,
    ):
        definition = registry.get(self.worker_id)
        if definition is None:
            raise WorkerNotFoundError(self.worker_id)
        self.definition: WorkerDefinition = definition
        self.config = config
        self.tools = tools
        self.validator = validator or LightweightValidator(config, definition.id, definition.validation_threshold)
        self._model = None

    def should_activate(self, context: WorkerExecutionContext) -> bool:
        if not self.definition.enabled:
            return False
        return bool(self.activated_guidelines(context))

    def activated_guidelines(self, context: WorkerExecutionContext) -> List[str]:
        associated = self.definition.associated_guideline_ids
        return [match.guideline.id for match in context.active_guidelines if match.guideline.id in associated]

    def available_tool_names(self, context: WorkerExecutionContext) -> frozenset[str]:
        """Registry tools plus those of activated guidelines, limited to what the host provides."""
        names = set(self.definition.tool_names)
        associated = self.definition.associated_guideline_ids
        for match in context.active_guidelines:
            if match.guideline.id in associated:
                names.update(match.guideline.tool_names)
        return frozenset(names) & self.tools.names()

    @abstractmethod
    def execute_iteration(self, context: WorkerExecutionContext, feedback: Optional[str] = None) -> WorkerIteration:
        """Run one generation pass, optionally with validator feedback injected."""

    @traceable(name="worker.execute", run_type="chain")
    def execute(self, context: WorkerExecutionContext) -> WorkerResult:
        started = time.perf_counter()
        if not self.should_activate(context):
            logger.info("[%s] not activated for this context", self.definition.id)
            return self._result("success", "", [], ValidationVerdict(score=10.0, is_valid=True), started, [], 0)

        activated = self.activated_guidelines(context)
        logger.info("[%s] activated by guidelines: %s", self.definition.id, ", ".join(activated))
        tool_schemas = self.tools.describe(self.definition.tool_names)

        response = ""
        executed: List[ToolExecution] = []
        iterations = 0
        try:
            iterations = 1
            attempt = self.execute_iteration(context)
            response, executed = attempt.response, attempt.tools_executed
            verdict = self.validator.validate(response, context, executed, tool_schemas)
            if verdict.is_valid:
                return self._result("success", response, executed, verdict, started, activated, iterations)

            if verdict.feedback and self.definition.max_retries > 0:
                logger.info("[%s] score %.1f below threshold, retrying with feedback", self.definition.id, verdict.score)
                iterations = 2
                attempt = self.execute_iteration(context, feedback=verdict.feedback)
                response, executed = attempt.response, attempt.tools_executed
                verdict = self.validator.validate(response, context, executed, tool_schemas)

            status: WorkerStatus = "success" if response.strip() else "failed"
            return self._result(status, response, executed, verdict, started, activated, iterations)
        except Exception as exc:
            logger.warning("[%s] execution error: %s", self.definition.id, exc)
            has_response = bool(response.strip())
            verdict = ValidationVerdict(
                score=DEGRADED_SCORE if has_response else 0.0,
                is_valid=has_response,
                feedback=str(exc),
            )
            status = "success" if has_response else "failed"
            return self._result(status, response, executed, verdict, started, activated, iterations, error=str(exc))

    def _generate(
        self,
        context: WorkerExecutionContext,
        instructions: Sequence[str],
        feedback: Optional[str] = None,
    ) -> WorkerIteration:
        """Call the model with this worker's tools bound, executing tool calls for a bounded number of steps.

        Every step's tool calls run, including those of the last step; once the
        bound is reached the loop stops without asking the model again.
        """
        tool_names = self.available_tool_names(context)
        messages: List[Any] = worker_prompts.build_worker_messages(
            self.definition, context, tool_names, instructions, feedback
        )
        bound_tools = self.tools.select(tool_names)
        model = self._get_model()
        runnable = model.bind_tools(bound_tools) if bound_tools else model

        executed: List[ToolExecution] = []
        response = runnable.invoke(messages)
        steps = 1
        while getattr(response, "tool_calls", None):
            messages.append(response)
            for call in response.tool_calls:
                execution = self._run_tool(call.get("name", ""), call.get("args") or {}, tool_names)
                executed.append(execution)
                messages.append(
                    ToolMessage(content=worker_prompts.render_tool_result(execution.result), tool_call_id=call.get("id") or "")
                )
            if steps >= self.config.worker_max_tool_steps:
                logger.info("[%s] tool step bound %d reached", self.definition.id, steps)
                break
            response = runnable.invoke(messages)
            steps += 1
        return WorkerIteration(response=message_text(response), tools_executed=executed)

    def _run_tool(self, name: str, args: Dict[str, Any], allowed: frozenset[str]) -> ToolExecution:
        try:
            if name not in allowed:
                raise ToolExecutionError(name, f"not available to {self.definition.id}")
            result = self.tools.execute(name, args)
        except ToolExecutionError as exc:
            logger.warning("[%s] %s", self.definition.id, exc)
            result = {"success": False, "error": str(exc)}
        return ToolExecution(tool_name=name, args=dict(args), result=result, timestamp=time.time())

    def _result(
        self,
        status: WorkerStatus,
        response: str,
        executed: List[ToolExecution],
        verdict: ValidationVerdict,
        started: float,
        activated: List[str],
        iterations: int,
        error: Optional[str] = None,
    ) -> WorkerResult:
        return WorkerResult(
            worker_id=self.definition.id,
            status=status,
            response=response,
            tools_executed=list(executed),
            validation=WorkerValidation(
                passed=verdict.is_valid,
                score=verdict.score,
                iterations=iterations,
                feedback=verdict.feedback,
                guidelines_criteria=self.definition.associated_guideline_ids,
            ),
            metadata=WorkerMetadata(
                execution_time_ms=int((time.perf_counter() - started) * 1000),
                activated_guidelines=activated,
            ),
            error=error,
        )

    def _get_model(self):
        if self._model is not None:
            return self._model

        from langchain_openai import ChatOpenAI

        self._model = ChatOpenAI(
            model=self.config.worker_model,
            temperature=self.config.worker_temperature,
            timeout=self.config.request_timeout_seconds,
        )
        return self._model
