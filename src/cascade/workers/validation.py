"""Lightweight validator scoring a worker's tool usage on a 0-10 scale."""

from typing import Dict, Optional, Sequence

from langsmith.run_helpers import traceable

from ..core.config import CascadeConfig
from ..core.logging import get_logger
from ..core.schemas import ValidationOutput
from ..core.types import ToolExecution, ValidationVerdict, WorkerExecutionContext
from ..prompts import validation as validation_prompts
from ..tools.contracts import ToolSchema

logger = get_logger(__name__)

NO_TOOLS_SCORE = 8.0


class LightweightValidator:
    def __init__(self, config: CascadeConfig, worker_id: str, threshold: Optional[float] = None):
        self.config = config
        self.worker_id = worker_id
        self.threshold = config.default_validation_threshold if threshold is None else threshold
        self._model = None

    @traceable(name="worker.validate", run_type="llm")
    def validate(
        self,
        response: str,
        context: WorkerExecutionContext,
        tools_executed: Sequence[ToolExecution],
        tool_schemas: Optional[Dict[str, ToolSchema]] = None,
    ) -> ValidationVerdict:
        if not tools_executed:
            logger.info("[%s] no tools executed, auto-passing", self.worker_id)
            return ValidationVerdict(score=NO_TOOLS_SCORE, is_valid=True)

        prompt = validation_prompts.build_validation_prompt(context.user_message, tools_executed, tool_schemas)
        output = self._get_model().with_structured_output(ValidationOutput).invoke(prompt)
        feedback = output.feedback.strip() or None
        is_valid = output.score >= self.threshold
        logger.info("[%s] validation score=%.1f valid=%s", self.worker_id, output.score, is_valid)
        return ValidationVerdict(score=output.score, is_valid=is_valid, feedback=feedback)

    def _get_model(self):
        if self._model is not None:
            return self._model

        from langchain_openai import ChatOpenAI

        self._model = ChatOpenAI(
            model=self.config.validator_model,
            temperature=self.config.validator_temperature,
            timeout=self.config.request_timeout_seconds,
        )
        return self._model
