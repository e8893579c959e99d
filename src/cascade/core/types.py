"""Shared dataclasses and literals for matcher-planner-executor-worker contracts."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional


Difficulty = Literal["low", "medium", "high"]
GuidelineScope = Literal["global", "journey", "state"]
ChatRole = Literal["user", "assistant", "system"]
MessageClassification = Literal["requires_action", "text_only"]
Complexity = Literal["low", "medium", "high"]
TaskStatus = Literal["pending", "running", "completed", "failed", "ask_user"]
WorkerStatus = Literal["success", "failed"]
DependencyPolicy = Literal["output", "success"]
FinalState = Literal["completed", "ask_user", "critical_abort", "cancelled", "fatal"]
FoundItemType = Literal["message", "property", "visit", "variable", "other"]


class TaskType(str, Enum):
    REASONING = "reasoning"
    CONTEXT_SEARCH = "context_search"
    WORKER_CALL = "worker_call"
    ASK_TO_USER = "ask_to_user"


_TASK_TRANSITIONS: Dict[str, frozenset] = {
    "pending": frozenset({"running", "failed"}),
    "running": frozenset({"completed", "failed", "ask_user"}),
}


@dataclass(frozen=True)
class ValidationCriterion:
    name: str
    description: str
    weight: int = 10
    examples: tuple[str, ...] = ()

    def __post_init__(self):
        if not 0 <= self.weight <= 100:
            raise ValueError(f"criterion weight must be in [0, 100], got {self.weight}")


@dataclass(frozen=True)
class Guideline:
    """A declarative condition -> action rule."""

    id: str
    condition: str
    action: str
    priority: int = 5
    difficulty: Difficulty = "medium"
    tags: frozenset[str] = frozenset()
    tool_names: frozenset[str] = frozenset()
    scope: GuidelineScope = "global"
    enabled: bool = True
    validation_criteria: tuple[ValidationCriterion, ...] = ()

    def __post_init__(self):
        if not 0 <= self.priority <= 10:
            raise ValueError(f"guideline priority must be in [0, 10], got {self.priority}")
        object.__setattr__(self, "tags", frozenset(self.tags))
        object.__setattr__(self, "tool_names", frozenset(self.tool_names))
        object.__setattr__(self, "validation_criteria", tuple(self.validation_criteria))


@dataclass
class GuidelineMatch:
    guideline: Guideline
    score: float
    reason: str


@dataclass(frozen=True)
class ChatMessage:
    role: ChatRole
    content: str


@dataclass(frozen=True)
class ToolResultRecord:
    tool_name: str
    result: Any


@dataclass
class Conversation:
    session_id: str
    messages: List[ChatMessage] = field(default_factory=list)
    tool_results: List[ToolResultRecord] = field(default_factory=list)

    @property
    def last_message(self) -> str:
        return self.messages[-1].content if self.messages else ""


@dataclass
class ClassificationResult:
    classification: MessageClassification
    confidence: float
    reasoning: str
    detected_intents: List[str] = field(default_factory=list)


@dataclass
class PlanTask:
    id: str
    step: int
    description: str
    type: TaskType
    worker_id: str = ""
    depends_on: frozenset[str] = frozenset()
    question_for_user: str = ""
    status: TaskStatus = "pending"
    result: Optional[str] = None
    error: Optional[str] = None

    def advance(self, status: TaskStatus, *, result: Optional[str] = None, error: Optional[str] = None) -> None:
        allowed = _TASK_TRANSITIONS.get(self.status, frozenset())
        if status not in allowed:
            raise ValueError(f"Task {self.id}: illegal transition {self.status} -> {status}")
        self.status = status
        if result is not None:
            self.result = result
        if error is not None:
            self.error = error


@dataclass
class ActionPlan:
    tasks: List[PlanTask]
    critical_path: bool = False
    direct_to_writer: bool = False
    reasoning: str = ""
    estimated_complexity: Complexity = "low"


@dataclass
class PlannerOutput:
    classification: ClassificationResult
    plan: ActionPlan


@dataclass(frozen=True)
class WorkerDefinition:
    id: str
    name: str
    description: str
    associated_guideline_ids: frozenset[str]
    tool_names: frozenset[str]
    validation_threshold: float = 7.0
    max_retries: int = 1
    enabled: bool = True

    def __post_init__(self):
        object.__setattr__(self, "associated_guideline_ids", frozenset(self.associated_guideline_ids))
        object.__setattr__(self, "tool_names", frozenset(self.tool_names))


@dataclass
class ToolExecution:
    tool_name: str
    args: Dict[str, Any]
    result: Any
    timestamp: float


@dataclass
class WorkerIteration:
    response: str
    tools_executed: List[ToolExecution] = field(default_factory=list)


@dataclass
class ValidationVerdict:
    score: float
    is_valid: bool
    feedback: Optional[str] = None


@dataclass
class WorkerValidation:
    passed: bool
    score: float
    iterations: int
    feedback: Optional[str] = None
    guidelines_criteria: frozenset[str] = frozenset()


@dataclass
class WorkerMetadata:
    execution_time_ms: int = 0
    activated_guidelines: List[str] = field(default_factory=list)


@dataclass
class WorkerResult:
    worker_id: str
    status: WorkerStatus
    response: str
    tools_executed: List[ToolExecution]
    validation: WorkerValidation
    metadata: WorkerMetadata = field(default_factory=WorkerMetadata)
    error: Optional[str] = None


@dataclass
class WorkerExecutionContext:
    user_message: str
    messages: List[ChatMessage]
    active_guidelines: List[GuidelineMatch]
    task: PlanTask
    plan: Optional[ActionPlan] = None
    previous_task_results: Dict[str, str] = field(default_factory=dict)
    context_variables: Dict[str, str] = field(default_factory=dict)


@dataclass
class SpecialistInput:
    task: PlanTask
    user_message: str
    messages: List[ChatMessage]
    active_guidelines: List[GuidelineMatch]
    previous_task_results: Dict[str, str] = field(default_factory=dict)
    plan: Optional[ActionPlan] = None


@dataclass
class ReasoningOutput:
    task_id: str
    success: bool
    reasoning: str = ""
    conclusion: str = ""
    extracted_data: Dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0
    error: Optional[str] = None


@dataclass
class FoundItem:
    type: FoundItemType
    content: str
    source: str = ""


@dataclass
class ContextSearchOutput:
    task_id: str
    success: bool
    summary: str = ""
    confidence: float = 0.0
    found_items: List[FoundItem] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class WriterInput:
    user_message: str
    messages: List[ChatMessage]
    active_guidelines: List[GuidelineMatch]
    worker_results: List[WorkerResult]
    plan: ActionPlan
    glossary_context: Optional[str] = None
    rag_context: Optional[str] = None
    context_variables: Dict[str, str] = field(default_factory=dict)


@dataclass
class WriterOutput:
    response: str
    used_worker_results: List[str] = field(default_factory=list)
    execution_time_ms: int = 0


@dataclass
class StyleResult:
    response: str
    score: float
    was_corrected: bool


@dataclass
class ExecutionOutcome:
    worker_results: List[WorkerResult]
    final_state: FinalState
    final_reason: str
    task_results: Dict[str, str] = field(default_factory=dict)


@dataclass
class CascadeMetadata:
    classification: ClassificationResult
    plan: Optional[ActionPlan]
    worker_results: List[WorkerResult]
    writer_iterations: int
    style_validation_passed: bool
    total_execution_time_ms: int
    executed_guidelines: List[str]


@dataclass
class CascadeResult:
    success: bool
    response: str
    metadata: CascadeMetadata
    error: Optional[str] = None
    trace: Dict[str, Any] = field(default_factory=dict)
