"""Sequential task walk: dependency checks, per-type dispatch and early exits."""

import json
import threading
from typing import Dict, List, Mapping, Optional, Sequence, assert_never

from langsmith.run_helpers import traceable

from .config import CascadeConfig
from .errors import CascadeCancelled, CriticalPathAbort, DependencyUnmetError, WorkerNotFoundError
from .logging import get_logger
from .types import (
    ActionPlan,
    ChatMessage,
    ContextSearchOutput,
    ExecutionOutcome,
    GuidelineMatch,
    PlanTask,
    ReasoningOutput,
    SpecialistInput,
    TaskType,
    WorkerExecutionContext,
    WorkerMetadata,
    WorkerResult,
    WorkerValidation,
)

logger = get_logger(__name__)

ASK_TO_USER_WORKER_ID = "ask_to_user"
FOUND_ITEM_PREVIEW_CHARS = 200


def format_reasoning_result(output: ReasoningOutput) -> str:
    data = f"Data: {json.dumps(output.extracted_data, ensure_ascii=False)}\n" if output.extracted_data else ""
    return (
        f"[REASONING]\nConclusion: {output.conclusion}\n"
        f"Confidence: {output.confidence}\n"
        f"{data}"
        f"Details: {output.reasoning}"
    )


def format_context_search_result(output: ContextSearchOutput) -> str:
    lines = [
        "[CONTEXT_SEARCH]",
        f"Summary: {output.summary}",
        f"Confidence: {output.confidence}",
        f"Items Found: {len(output.found_items)}",
    ]
    for idx, item in enumerate(output.found_items, start=1):
        content = item.content[:FOUND_ITEM_PREVIEW_CHARS]
        if len(item.content) > FOUND_ITEM_PREVIEW_CHARS:
            content += "..."
        lines.append(f"  {idx}. [{item.type}] {content}")
    return "\n".join(lines)


def format_ask_to_user_result(task: PlanTask, task_results: Mapping[str, str]) -> str:
    collected = "\n".join(f"[Task {task_id}]: {result}" for task_id, result in task_results.items())
    return f"[ASK_TO_USER]\nQuestion: {task.question_for_user or task.description}\nCollected Context:\n{collected}"


def failed_worker_result(worker_id: str, feedback: str, error: str) -> WorkerResult:
    return WorkerResult(
        worker_id=worker_id,
        status="failed",
        response="",
        tools_executed=[],
        validation=WorkerValidation(passed=False, score=0.0, iterations=0, feedback=feedback),
        metadata=WorkerMetadata(),
        error=error,
    )


class CascadeExecutor:
    """Walks a plan in step order; one task runs at a time and results become visible in that order.

    A task whose dependencies are unmet is marked failed and the walk continues,
    except for a ``worker_call`` on the critical path: it records a failed
    worker result and aborts like any other failed critical worker.
    """

    def __init__(self, config: CascadeConfig, workers: Mapping[str, object], specialists):
        self.config = config
        self.workers = dict(workers)
        self.specialists = specialists

    @traceable(name="executor.run", run_type="chain")
    def run(
        self,
        plan: ActionPlan,
        *,
        user_message: str,
        messages: Sequence[ChatMessage],
        active_guidelines: Sequence[GuidelineMatch],
        context_variables: Optional[Dict[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ExecutionOutcome:
        results: List[WorkerResult] = []
        task_results: Dict[str, str] = {}
        completed: set[str] = set()
        critical = self.config.critical_path_enabled and plan.critical_path
        variables = dict(context_variables or {})

        try:
            for task in sorted(plan.tasks, key=lambda item: item.step):
                if cancel_event is not None and cancel_event.is_set():
                    raise CascadeCancelled(task.id)

                try:
                    self._check_dependencies(task, task_results, completed)
                except DependencyUnmetError as exc:
                    logger.warning("dependencies not met for task %s: %s", task.id, ", ".join(exc.missing))
                    task.advance("failed", error=str(exc))
                    if task.type is TaskType.WORKER_CALL:
                        results.append(failed_worker_result(task.worker_id, str(exc), str(exc)))
                        if critical:
                            raise CriticalPathAbort(task.id, task.worker_id) from exc
                    continue

                task.advance("running")
                logger.info("task %s step=%d type=%s", task.id, task.step, task.type.value)
                if task.type is TaskType.ASK_TO_USER:
                    task.advance("ask_user", result=format_ask_to_user_result(task, task_results))
                    task_results[task.id] = task.result or ""
                    results.append(self._ask_to_user_result(task))
                    return ExecutionOutcome(results, "ask_user", f"ask_to_user:{task.id}", task_results)
                elif task.type is TaskType.REASONING:
                    self._run_reasoning(task, plan, user_message, messages, active_guidelines, task_results)
                elif task.type is TaskType.CONTEXT_SEARCH:
                    self._run_context_search(task, plan, user_message, messages, active_guidelines, task_results)
                elif task.type is TaskType.WORKER_CALL:
                    result = self._run_worker_call(task, plan, user_message, messages, active_guidelines, task_results, variables)
                    results.append(result)
                else:
                    assert_never(task.type)

                self._record(task, task_results, completed)
                if critical and task.type is TaskType.WORKER_CALL and task.status != "completed":
                    raise CriticalPathAbort(task.id, task.worker_id)
        except CriticalPathAbort as exc:
            logger.error("critical path abort: %s", exc)
            return ExecutionOutcome(results, "critical_abort", str(exc), task_results)
        except CascadeCancelled as exc:
            logger.warning("%s", exc)
            return ExecutionOutcome(results, "cancelled", str(exc), task_results)

        return ExecutionOutcome(results, "completed", "all_tasks_processed", task_results)

    @staticmethod
    def _record(task: PlanTask, task_results: Dict[str, str], completed: set[str]) -> None:
        # failed tasks with output still land in task_results
        if task.result:
            task_results[task.id] = task.result
        if task.status == "completed":
            completed.add(task.id)

    def _check_dependencies(self, task: PlanTask, task_results: Mapping[str, str], completed: set[str]) -> None:
        if self.config.dependency_policy == "success":
            satisfied = completed
        else:
            satisfied = task_results.keys()
        missing = sorted(dep for dep in task.depends_on if dep not in satisfied)
        if missing:
            raise DependencyUnmetError(task.id, missing)

    def _specialist_input(self, task, plan, user_message, messages, active_guidelines, task_results) -> SpecialistInput:
        return SpecialistInput(
            task=task,
            user_message=user_message,
            messages=list(messages),
            active_guidelines=list(active_guidelines),
            previous_task_results=dict(task_results),
            plan=plan,
        )

    def _run_reasoning(self, task, plan, user_message, messages, active_guidelines, task_results) -> None:
        output = self.specialists.reason(
            self._specialist_input(task, plan, user_message, messages, active_guidelines, task_results)
        )
        if output.success:
            task.advance("completed", result=format_reasoning_result(output))
        else:
            task.advance("failed", error=output.error or "Reasoning failed")

    def _run_context_search(self, task, plan, user_message, messages, active_guidelines, task_results) -> None:
        output = self.specialists.search_context(
            self._specialist_input(task, plan, user_message, messages, active_guidelines, task_results)
        )
        if output.success:
            task.advance("completed", result=format_context_search_result(output))
        else:
            task.advance("failed", error=output.error or "Context search failed")

    def _run_worker_call(
        self,
        task: PlanTask,
        plan: ActionPlan,
        user_message: str,
        messages: Sequence[ChatMessage],
        active_guidelines: Sequence[GuidelineMatch],
        task_results: Mapping[str, str],
        context_variables: Dict[str, str],
    ) -> WorkerResult:
        try:
            worker = self._resolve_worker(task.worker_id)
        except WorkerNotFoundError as exc:
            logger.warning("%s", exc)
            task.advance("failed", error=str(exc))
            return failed_worker_result(task.worker_id, "Worker not found", str(exc))

        context = WorkerExecutionContext(
            user_message=user_message,
            messages=list(messages),
            active_guidelines=list(active_guidelines),
            task=task,
            plan=plan,
            previous_task_results=dict(task_results),
            context_variables=dict(context_variables),
        )
        result = worker.execute(context)
        task.advance(
            "completed" if result.status == "success" else "failed",
            result=result.response or None,
            error=result.error,
        )
        logger.info("worker %s status=%s score=%.1f", result.worker_id, result.status, result.validation.score)
        return result

    def _resolve_worker(self, worker_id: str):
        worker = self.workers.get(worker_id) if worker_id else None
        if worker is None:
            raise WorkerNotFoundError(worker_id)
        return worker

    def _ask_to_user_result(self, task: PlanTask) -> WorkerResult:
        return WorkerResult(
            worker_id=ASK_TO_USER_WORKER_ID,
            status="success",
            response=task.result or "",
            tools_executed=[],
            validation=WorkerValidation(passed=True, score=10.0, iterations=0, feedback="User interaction required"),
            metadata=WorkerMetadata(),
        )
