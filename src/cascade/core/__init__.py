"""Core cascade contracts, executor and orchestrator."""

from .config import CascadeConfig
from .errors import (
    CascadeCancelled,
    CascadeError,
    CriticalPathAbort,
    DependencyUnmetError,
    MatchEvaluationError,
    ToolExecutionError,
    WorkerNotFoundError,
)
from .executor import CascadeExecutor
from .orchestrator import CascadeOrchestrator, collect_tool_executions, default_context_variables
from .types import (
    ActionPlan,
    CascadeMetadata,
    CascadeResult,
    ChatMessage,
    ClassificationResult,
    Conversation,
    Guideline,
    GuidelineMatch,
    PlanTask,
    TaskType,
    WorkerDefinition,
    WorkerResult,
)

__all__ = [
    "ActionPlan",
    "CascadeCancelled",
    "CascadeConfig",
    "CascadeError",
    "CascadeExecutor",
    "CascadeMetadata",
    "CascadeOrchestrator",
    "CascadeResult",
    "ChatMessage",
    "ClassificationResult",
    "Conversation",
    "CriticalPathAbort",
    "DependencyUnmetError",
    "Guideline",
    "GuidelineMatch",
    "MatchEvaluationError",
    "PlanTask",
    "TaskType",
    "ToolExecutionError",
    "WorkerDefinition",
    "WorkerNotFoundError",
    "WorkerResult",
    "collect_tool_executions",
    "default_context_variables",
]
