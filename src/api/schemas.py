"""Request/response models for the FastAPI layer."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ChatTurn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class CriterionModel(BaseModel):
    name: str
    description: str
    weight: int = Field(default=10, ge=0, le=100)
    examples: list[str] = Field(default_factory=list)


class GuidelineModel(BaseModel):
    id: str
    condition: str
    action: str
    priority: int = Field(default=5, ge=0, le=10)
    difficulty: Literal["low", "medium", "high"] = "medium"
    tags: list[str] = Field(default_factory=list)
    tool_names: list[str] = Field(default_factory=list)
    scope: Literal["global", "journey", "state"] = "global"
    enabled: bool = True
    validation_criteria: list[CriterionModel] = Field(default_factory=list)


class GuidelineListResponse(BaseModel):
    version: int
    guidelines: list[GuidelineModel]


class MessageRequest(BaseModel):
    message: str
    session_id: str = "default"
    history: list[ChatTurn] = Field(default_factory=list)
    threshold: float | None = Field(default=None, ge=0, le=1)
    glossary_context: str | None = None
    rag_context: str | None = None


class WorkerSummary(BaseModel):
    worker_id: str
    status: Literal["success", "failed"]
    score: float
    iterations: int
    tools: list[str]
    error: str | None = None


class MessageResponse(BaseModel):
    success: bool
    response: str
    classification: str
    matched_guidelines: list[str]
    workers: list[WorkerSummary]
    style_validation_passed: bool
    total_execution_time_ms: int
    final_state: str | None = None
    error: str | None = None
    trace: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"]
    model_configured: bool
    guideline_count: int
    missing_tools: list[str]
    message: str
