"""Feedback collection worker."""

from typing import Optional

from ..core.types import WorkerExecutionContext, WorkerIteration
from ..prompts.worker import FEEDBACK_INSTRUCTIONS
from .base import BaseWorker


class FeedbackWorker(BaseWorker):
    worker_id = "feedback_worker"

    def execute_iteration(self, context: WorkerExecutionContext, feedback: Optional[str] = None) -> WorkerIteration:
        return self._generate(context, FEEDBACK_INSTRUCTIONS, feedback)
