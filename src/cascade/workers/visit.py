"""Visit scheduling, cancellation and rescheduling worker."""

from typing import Optional

from ..core.types import WorkerExecutionContext, WorkerIteration
from ..prompts.worker import VISIT_INSTRUCTIONS
from .base import BaseWorker


class VisitWorker(BaseWorker):
    worker_id = "visit_worker"

    def execute_iteration(self, context: WorkerExecutionContext, feedback: Optional[str] = None) -> WorkerIteration:
        return self._generate(context, VISIT_INSTRUCTIONS, feedback)
