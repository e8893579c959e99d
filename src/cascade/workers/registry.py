"""Static worker catalog: which guidelines activate a worker and which tools it may call."""

from typing import Dict, Iterable, List, Optional

from ..core.types import WorkerDefinition


class WorkerRegistry:
    """Immutable, id-keyed collection of worker definitions."""

    def __init__(self, definitions: Iterable[WorkerDefinition]):
        self._definitions: Dict[str, WorkerDefinition] = {}
        for definition in definitions:
            if definition.id in self._definitions:
                raise ValueError(f"Duplicate worker id in registry: {definition.id}")
            self._definitions[definition.id] = definition

    def __iter__(self):
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, worker_id: object) -> bool:
        return worker_id in self._definitions

    def get(self, worker_id: str) -> Optional[WorkerDefinition]:
        return self._definitions.get(worker_id)

    def enabled(self) -> List[WorkerDefinition]:
        return [definition for definition in self._definitions.values() if definition.enabled]

    def is_enabled(self, worker_id: str) -> bool:
        definition = self._definitions.get(worker_id)
        return definition is not None and definition.enabled

    def find_worker_for_guideline(self, guideline_id: str) -> Optional[WorkerDefinition]:
        for definition in self.enabled():
            if guideline_id in definition.associated_guideline_ids:
                return definition
        return None

    def active_workers_for(self, guideline_ids: Iterable[str]) -> List[WorkerDefinition]:
        """Enabled workers bound to any of the given guidelines, in first-seen order."""
        active: Dict[str, WorkerDefinition] = {}
        for guideline_id in guideline_ids:
            definition = self.find_worker_for_guideline(guideline_id)
            if definition is not None:
                active.setdefault(definition.id, definition)
        return list(active.values())


DEFAULT_WORKER_DEFINITIONS: tuple[WorkerDefinition, ...] = (
    WorkerDefinition(
        id="search_worker",
        name="Property Search Worker",
        description="Handles property search and information retrieval",
        associated_guideline_ids=frozenset(
            {
                "search_properties",
                "get_property_detail",
                "show_photos",
                "show_interest",
                "property_reference_context",
                "no_results_fallback",
            }
        ),
        tool_names=frozenset({"search_properties", "get_property_info"}),
        validation_threshold=7.0,
        max_retries=2,
    ),
    WorkerDefinition(
        id="visit_worker",
        name="Visit Management Worker",
        description="Handles visit scheduling, cancellation, and rescheduling",
        associated_guideline_ids=frozenset(
            {
                "schedule_visit",
                "query_visit_availability_only",
                "cancel_visit",
                "reschedule_visit",
                "check_visit_status",
            }
        ),
        tool_names=frozenset(
            {
                "get_availability",
                "create_visit",
                "add_visitor",
                "cancel_visit",
                "reschedule_visit",
                "ask_availability",
                "get_visit_status",
            }
        ),
        validation_threshold=7.0,
        max_retries=2,
    ),
    WorkerDefinition(
        id="support_worker",
        name="Support Escalation Worker",
        description="Handles escalation to human agents and sensitive topics",
        associated_guideline_ids=frozenset(
            {"get_human_help", "price_negotiation_escalation", "handle_selling_inquiry"}
        ),
        tool_names=frozenset({"get_help"}),
        validation_threshold=8.0,
        max_retries=1,
    ),
    WorkerDefinition(
        id="feedback_worker",
        name="Feedback Collection Worker",
        description="Handles feedback collection and logging",
        associated_guideline_ids=frozenset({"collect_feedback", "save_feedback"}),
        tool_names=frozenset({"log_feedback"}),
        validation_threshold=6.0,
        max_retries=2,
    ),
)

DEFAULT_WORKER_REGISTRY = WorkerRegistry(DEFAULT_WORKER_DEFINITIONS)
