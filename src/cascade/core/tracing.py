"""Trace payload builders used by cascade orchestration."""

from dataclasses import asdict

from .trace_types import ClassificationPayload, TaskTracePayload, WorkerTracePayload
from .types import ActionPlan, ClassificationResult, PlanTask, WorkerResult


def build_task_payload(task: PlanTask) -> TaskTracePayload:
    return {
        "id": task.id,
        "step": task.step,
        "type": task.type.value,
        "status": task.status,
        "worker_id": task.worker_id,
        "error": task.error,
        "result_preview": (task.result or "")[:200],
    }


def build_worker_payload(result: WorkerResult) -> WorkerTracePayload:
    payload: WorkerTracePayload = {
        "worker_id": result.worker_id,
        "status": result.status,
        "score": result.validation.score,
        "iterations": result.validation.iterations,
        "tools": [tool.tool_name for tool in result.tools_executed],
    }
    if result.error:
        payload["error"] = result.error
    return payload


def build_classification_payload(classification: ClassificationResult) -> ClassificationPayload:
    return {
        "classification": classification.classification,
        "confidence": classification.confidence,
        "detected_intents": list(classification.detected_intents),
    }


def build_plan_payload(plan: ActionPlan) -> dict:
    payload = asdict(plan)
    for task in payload["tasks"]:
        task["type"] = task["type"].value
        task["depends_on"] = sorted(task["depends_on"])
    return payload
