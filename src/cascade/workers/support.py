"""Escalation worker for sensitive topics that need a human."""

from typing import Optional

from ..core.logging import get_logger
from ..core.types import WorkerExecutionContext, WorkerIteration
from ..prompts.worker import SUPPORT_INSTRUCTIONS
from .base import BaseWorker

logger = get_logger(__name__)

ESCALATION_TOOL = "get_help"


class SupportWorker(BaseWorker):
    worker_id = "support_worker"

    def execute_iteration(self, context: WorkerExecutionContext, feedback: Optional[str] = None) -> WorkerIteration:
        iteration = self._generate(context, SUPPORT_INSTRUCTIONS, feedback)
        if not any(tool.tool_name == ESCALATION_TOOL for tool in iteration.tools_executed):
            logger.warning("[%s] %s was not executed", self.definition.id, ESCALATION_TOOL)
        return iteration
