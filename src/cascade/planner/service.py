"""Two-stage planner: message classification, then task-list construction."""

from typing import List, Sequence

from langsmith.run_helpers import traceable

from ..core.config import CascadeConfig
from ..core.logging import get_logger
from ..core.schemas import ActionPlanOutput, ClassificationOutput, PlanTaskOutput
from ..core.types import (
    ActionPlan,
    ChatMessage,
    ClassificationResult,
    GuidelineMatch,
    MessageClassification,
    PlannerOutput,
    PlanTask,
    TaskType,
)
from ..prompts import planner as planner_prompts
from ..workers.registry import DEFAULT_WORKER_REGISTRY, WorkerRegistry

logger = get_logger(__name__)

ACTION_KEYWORDS = (
    "search",
    "looking for",
    "i want",
    "i need",
    "schedule",
    "book",
    "cancel",
    "reschedule",
    "availability",
    "available",
    "contact",
    "talk to",
    "feedback",
    "rating",
)

TEXT_ONLY_PLAN_REASONING = "Message classified as text only; no tool execution required"


class ActionPlanner:
    """Classifies a message and, when action is required, plans worker tasks."""

    def __init__(self, config: CascadeConfig, registry: WorkerRegistry = DEFAULT_WORKER_REGISTRY):
        self.config = config
        self.registry = registry
        self._classifier_model = None
        self._planner_model = None

    @traceable(name="planner.plan", run_type="chain")
    def plan(
        self,
        user_message: str,
        messages: Sequence[ChatMessage],
        active_guidelines: Sequence[GuidelineMatch],
    ) -> PlannerOutput:
        classification = self.classify(user_message, messages, active_guidelines)
        if classification.classification == "text_only":
            logger.info("text-only message, skipping planning")
            return PlannerOutput(
                classification=classification,
                plan=ActionPlan(
                    tasks=[],
                    critical_path=False,
                    direct_to_writer=True,
                    reasoning=TEXT_ONLY_PLAN_REASONING,
                    estimated_complexity="low",
                ),
            )

        raw_plan = self._generate_plan(user_message, classification, active_guidelines)
        tasks = sorted((self._to_task(raw) for raw in raw_plan.tasks), key=lambda task: task.step)
        plan = ActionPlan(
            tasks=tasks,
            critical_path=raw_plan.critical_path,
            direct_to_writer=raw_plan.direct_to_writer,
            reasoning=raw_plan.reasoning,
            estimated_complexity=raw_plan.estimated_complexity,
        )
        worker_ids = [task.worker_id for task in tasks if task.type is TaskType.WORKER_CALL]
        logger.info("plan created tasks=%d worker_calls=%s", len(tasks), ", ".join(worker_ids) or "none")
        return PlannerOutput(classification=classification, plan=plan)

    @traceable(name="planner.classify", run_type="llm")
    def classify(
        self,
        user_message: str,
        messages: Sequence[ChatMessage],
        active_guidelines: Sequence[GuidelineMatch],
    ) -> ClassificationResult:
        model = self._get_classifier_model().with_structured_output(ClassificationOutput)
        output = model.invoke(planner_prompts.build_classification_prompt(user_message, messages, active_guidelines))
        logger.info("classification=%s confidence=%.2f", output.classification, output.confidence)
        return ClassificationResult(
            classification=output.classification,
            confidence=output.confidence,
            reasoning=output.reasoning,
            detected_intents=list(output.detected_intents),
        )

    def quick_classify(self, user_message: str, active_guideline_ids: Sequence[str]) -> MessageClassification:
        """Heuristic classification without a model call."""
        if any(self.registry.find_worker_for_guideline(guideline_id) for guideline_id in active_guideline_ids):
            return "requires_action"
        lowered = user_message.lower()
        if any(keyword in lowered for keyword in ACTION_KEYWORDS):
            return "requires_action"
        return "text_only"

    def _generate_plan(
        self,
        user_message: str,
        classification: ClassificationResult,
        active_guidelines: Sequence[GuidelineMatch],
    ) -> ActionPlanOutput:
        active_ids = {
            worker.id for worker in self.registry.active_workers_for(match.guideline.id for match in active_guidelines)
        }
        prompt = planner_prompts.build_planning_prompt(
            user_message,
            classification,
            active_guidelines,
            self.registry.enabled(),
            active_ids,
        )
        model = self._get_planner_model().with_structured_output(ActionPlanOutput)
        return model.invoke(prompt)

    def _to_task(self, raw: PlanTaskOutput) -> PlanTask:
        task_type = TaskType(raw.type)
        worker_id = raw.worker_id.strip()
        if task_type is TaskType.WORKER_CALL and not self.registry.is_enabled(worker_id):
            logger.warning("invalid worker id in task %s: %r, downgrading to reasoning", raw.id, worker_id)
            task_type = TaskType.REASONING
            worker_id = ""
        elif task_type is not TaskType.WORKER_CALL:
            worker_id = ""
        return PlanTask(
            id=raw.id,
            step=raw.step,
            description=raw.description,
            type=task_type,
            worker_id=worker_id,
            depends_on=frozenset(raw.depends_on),
            question_for_user=raw.question_for_user if task_type is TaskType.ASK_TO_USER else "",
        )

    def _get_classifier_model(self):
        if self._classifier_model is not None:
            return self._classifier_model

        from langchain_openai import ChatOpenAI

        self._classifier_model = ChatOpenAI(
            model=self.config.classifier_model,
            temperature=self.config.classifier_temperature,
            timeout=self.config.request_timeout_seconds,
        )
        return self._classifier_model

    def _get_planner_model(self):
        if self._planner_model is not None:
            return self._planner_model

        from langchain_openai import ChatOpenAI

        self._planner_model = ChatOpenAI(
            model=self.config.planner_model,
            temperature=self.config.planner_temperature,
            timeout=self.config.request_timeout_seconds,
        )
        return self._planner_model
