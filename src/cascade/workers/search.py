"""Property search worker."""

from typing import Optional

from ..core.types import WorkerExecutionContext, WorkerIteration
from ..prompts.worker import SEARCH_INSTRUCTIONS
from .base import BaseWorker


class SearchWorker(BaseWorker):
    worker_id = "search_worker"

    def execute_iteration(self, context: WorkerExecutionContext, feedback: Optional[str] = None) -> WorkerIteration:
        return self._generate(context, SEARCH_INSTRUCTIONS, feedback)
