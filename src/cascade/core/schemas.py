"""Pydantic models describing structured generation output."""

from typing import Literal

from pydantic import BaseModel, Field


class GuidelineEvaluation(BaseModel):
    applies: bool = Field(description="Whether the guideline condition holds for the conversation")
    confidence: float = Field(ge=0, le=1, description="Confidence in the evaluation (0-1)")
    reasoning: str = Field(description="Short explanation of why it applies or not")


class IndexedGuidelineEvaluation(GuidelineEvaluation):
    guideline_index: int = Field(description="1-based index of the guideline inside the batch")


class BatchEvaluation(BaseModel):
    evaluations: list[IndexedGuidelineEvaluation]


class ClassificationOutput(BaseModel):
    classification: Literal["requires_action", "text_only"]
    confidence: float = Field(ge=0, le=1)
    reasoning: str
    detected_intents: list[str] = Field(default_factory=list)


class PlanTaskOutput(BaseModel):
    id: str = Field(description='Unique task id, e.g. "task_1"')
    step: int = Field(description="Position in the sequence (1, 2, 3...)")
    description: str = Field(description="What to do in this step, in natural language")
    type: Literal["reasoning", "context_search", "worker_call", "ask_to_user"]
    worker_id: str = Field(default="", description='Worker to call; "" unless type is worker_call')
    depends_on: list[str] = Field(default_factory=list, description="Task ids that must finish first")
    question_for_user: str = Field(default="", description="Question to ask; only for ask_to_user")


class ActionPlanOutput(BaseModel):
    tasks: list[PlanTaskOutput]
    critical_path: bool = Field(description="Abort everything if a worker task fails")
    direct_to_writer: bool = Field(description="No tasks needed, go straight to the writer")
    reasoning: str
    estimated_complexity: Literal["low", "medium", "high"] = "low"


class ValidationOutput(BaseModel):
    score: float = Field(ge=0, le=10, description="0-10; 7+ means the execution was correct")
    feedback: str = Field(
        default="",
        description="If the score is low, which tool to run and with which parameters. Empty otherwise.",
    )


class FoundItemOutput(BaseModel):
    type: Literal["message", "property", "visit", "variable", "other"] = "other"
    content: str
    source: str = ""


class ContextSearchResultOutput(BaseModel):
    summary: str
    confidence: float = Field(ge=0, le=1)
    found_items: list[FoundItemOutput] = Field(default_factory=list)


class StyleOutput(BaseModel):
    score: float = Field(ge=0, le=10)
    corrected_response: str = Field(default="", description="Corrected reply; empty if no change is needed")
