from .core.config import CascadeConfig
from .core.errors import CascadeError
from .core.executor import CascadeExecutor
from .core.orchestrator import CascadeOrchestrator
from .core.types import (
    ActionPlan,
    CascadeResult,
    ChatMessage,
    Conversation,
    Guideline,
    GuidelineMatch,
    PlanTask,
    TaskType,
    WorkerDefinition,
    WorkerResult,
)
from .guidelines import DEFAULT_GUIDELINES, GuidelineMatcher, GuidelineStore, build_context_search_guideline
from .planner.service import ActionPlanner
from .specialists.service import Specialists
from .tools import ToolRegistry, host_tool
from .workers import DEFAULT_WORKER_REGISTRY, WorkerRegistry, build_workers

__all__ = [
    "ActionPlan",
    "ActionPlanner",
    "CascadeConfig",
    "CascadeError",
    "CascadeExecutor",
    "CascadeOrchestrator",
    "CascadeResult",
    "ChatMessage",
    "Conversation",
    "DEFAULT_GUIDELINES",
    "DEFAULT_WORKER_REGISTRY",
    "Guideline",
    "GuidelineMatch",
    "GuidelineMatcher",
    "GuidelineStore",
    "PlanTask",
    "Specialists",
    "TaskType",
    "ToolRegistry",
    "WorkerDefinition",
    "WorkerRegistry",
    "WorkerResult",
    "build_context_search_guideline",
    "build_workers",
    "host_tool",
]
