"""TypedDict payload shapes for cascade trace objects."""

from typing import Any, NotRequired, TypedDict


class TaskTracePayload(TypedDict):
    id: str
    step: int
    type: str
    status: str
    worker_id: str
    error: str | None
    result_preview: str


class WorkerTracePayload(TypedDict):
    worker_id: str
    status: str
    score: float
    iterations: int
    tools: list[str]
    error: NotRequired[str]


class ClassificationPayload(TypedDict):
    classification: str
    confidence: float
    detected_intents: list[str]


class TracePayload(TypedDict, total=False):
    classification: ClassificationPayload
    plan: dict[str, Any]
    tasks: list[TaskTracePayload]
    workers: list[WorkerTracePayload]
    style: dict[str, Any]
    final_state: str | None
    final_reason: str | None
