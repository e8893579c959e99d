"""Top-level cascade: plan, execute tasks, compose, style-validate, shape the result."""

import threading
import time
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

from langsmith.run_helpers import traceable

from .config import CascadeConfig
from .executor import CascadeExecutor
from .logging import get_logger
from .trace_types import TracePayload
from .tracing import build_classification_payload, build_plan_payload, build_task_payload, build_worker_payload
from .types import (
    CascadeMetadata,
    CascadeResult,
    ChatMessage,
    ClassificationResult,
    GuidelineMatch,
    PlannerOutput,
    WorkerResult,
    WriterInput,
)

logger = get_logger(__name__)

STYLE_PASS_SCORE = 7.0

ContextVariablesProvider = Callable[[], Dict[str, str]]


def default_context_variables() -> Dict[str, str]:
    today = date.today()
    return {"current_date": today.isoformat(), "current_weekday": today.strftime("%A")}


def collect_tool_executions(worker_results: Sequence[WorkerResult]) -> List[Dict[str, Any]]:
    """Flatten every worker's tool calls, tagged with the worker id."""
    return [
        {
            "worker_id": result.worker_id,
            "tool_name": tool.tool_name,
            "args": tool.args,
            "result": tool.result,
            "timestamp": tool.timestamp,
        }
        for result in worker_results
        for tool in result.tools_executed
    ]


class CascadeOrchestrator:
    """Runs one message through planner, executor, writer and style validator.

    ``execute`` never raises: aborts, cancellations and unexpected errors all
    come back as ``success=False`` with the configured fallback reply.
    """

    def __init__(
        self,
        config: CascadeConfig,
        planner,
        executor: CascadeExecutor,
        specialists,
        context_variables: Optional[ContextVariablesProvider] = None,
    ):
        self.config = config
        self.planner = planner
        self.executor = executor
        self.specialists = specialists
        self.context_variables = context_variables or default_context_variables

    @classmethod
    def build(cls, config: CascadeConfig, tools, registry=None) -> "CascadeOrchestrator":
        from ..planner.service import ActionPlanner
        from ..specialists.service import Specialists
        from ..workers import DEFAULT_WORKER_REGISTRY, build_workers

        registry = registry or DEFAULT_WORKER_REGISTRY
        specialists = Specialists(config)
        executor = CascadeExecutor(config, build_workers(config, tools, registry), specialists)
        return cls(config, ActionPlanner(config, registry), executor, specialists)

    collect_tool_executions = staticmethod(collect_tool_executions)

    @traceable(name="orchestrator.execute", run_type="chain")
    def execute(
        self,
        user_message: str,
        messages: Sequence[ChatMessage],
        active_guidelines: Sequence[GuidelineMatch],
        glossary_context: Optional[str] = None,
        rag_context: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> CascadeResult:
        started = time.perf_counter()
        trace: TracePayload = {"tasks": [], "workers": [], "final_state": None, "final_reason": None}
        try:
            context_variables = self.context_variables()
            planner_output = self.planner.plan(user_message, messages, active_guidelines)
            plan = planner_output.plan
            trace["classification"] = build_classification_payload(planner_output.classification)
            trace["plan"] = build_plan_payload(plan)
            logger.info(
                "classification=%s direct_to_writer=%s tasks=%d",
                planner_output.classification.classification,
                plan.direct_to_writer,
                len(plan.tasks),
            )

            worker_results: List[WorkerResult] = []
            if not plan.direct_to_writer and plan.tasks:
                outcome = self.executor.run(
                    plan,
                    user_message=user_message,
                    messages=messages,
                    active_guidelines=active_guidelines,
                    context_variables=context_variables,
                    cancel_event=cancel_event,
                )
                worker_results = outcome.worker_results
                trace["tasks"] = [build_task_payload(task) for task in plan.tasks]
                trace["workers"] = [build_worker_payload(result) for result in worker_results]
                trace["final_state"] = outcome.final_state
                trace["final_reason"] = outcome.final_reason

                if outcome.final_state == "cancelled":
                    return self._failure(planner_output, worker_results, outcome.final_reason, started, trace)

                if self.config.critical_path_enabled and plan.critical_path:
                    failed = [result.worker_id for result in worker_results if result.status == "failed"]
                    if failed:
                        error = f"Critical worker(s) failed: {', '.join(failed)}"
                        logger.error(error)
                        trace["final_state"] = "critical_abort"
                        trace["final_reason"] = error
                        return self._failure(planner_output, worker_results, error, started, trace)
            else:
                trace["final_state"] = "completed"
                trace["final_reason"] = "direct_to_writer"

            writer_output = self.specialists.compose(
                WriterInput(
                    user_message=user_message,
                    messages=list(messages),
                    active_guidelines=list(active_guidelines),
                    worker_results=worker_results,
                    plan=plan,
                    glossary_context=glossary_context,
                    rag_context=rag_context,
                    context_variables=context_variables,
                )
            )
            response = writer_output.response

            style_passed = True
            if self.config.style_validation_enabled:
                style = self.specialists.validate_style(response, user_message, active_guidelines, context_variables)
                response = style.response
                style_passed = style.score >= STYLE_PASS_SCORE
                trace["style"] = {"score": style.score, "was_corrected": style.was_corrected}
                logger.info("style score=%.1f corrected=%s", style.score, style.was_corrected)

            return CascadeResult(
                success=True,
                response=response,
                metadata=CascadeMetadata(
                    classification=planner_output.classification,
                    plan=plan,
                    worker_results=worker_results,
                    writer_iterations=1,
                    style_validation_passed=style_passed,
                    total_execution_time_ms=self._elapsed_ms(started),
                    executed_guidelines=[match.guideline.id for match in active_guidelines],
                ),
                trace=dict(trace),
            )
        except Exception as exc:
            logger.exception("cascade execution failed")
            trace["final_state"] = "fatal"
            trace["final_reason"] = str(exc)
            return CascadeResult(
                success=False,
                response=self.config.fallback_response,
                metadata=CascadeMetadata(
                    classification=ClassificationResult(
                        classification="text_only",
                        confidence=0.0,
                        reasoning="Error during execution",
                    ),
                    plan=None,
                    worker_results=[],
                    writer_iterations=0,
                    style_validation_passed=False,
                    total_execution_time_ms=self._elapsed_ms(started),
                    executed_guidelines=[],
                ),
                error=str(exc),
                trace=dict(trace),
            )

    def _failure(
        self,
        planner_output: PlannerOutput,
        worker_results: List[WorkerResult],
        error: str,
        started: float,
        trace: TracePayload,
    ) -> CascadeResult:
        return CascadeResult(
            success=False,
            response=self.config.fallback_response,
            metadata=CascadeMetadata(
                classification=planner_output.classification,
                plan=planner_output.plan,
                worker_results=worker_results,
                writer_iterations=0,
                style_validation_passed=False,
                total_execution_time_ms=self._elapsed_ms(started),
                executed_guidelines=[],
            ),
            error=error,
            trace=dict(trace),
        )

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.perf_counter() - started) * 1000)
