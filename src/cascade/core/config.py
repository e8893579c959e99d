"""Environment-backed configuration for cascade orchestration."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CascadeConfig(BaseSettings):
    """Environment-backed configuration for the guideline cascade.

    Config usage map (selected):
    - match_*: guidelines/matcher.py
    - classifier_model/planner_model: planner/service.py
    - worker_model/worker_temperature/worker_max_tool_steps: workers/base.py
    - validator_model/default_validation_threshold: workers/validation.py, workers/registry.py
    - reasoning_*/context_search_*/writer_*/style_*: specialists/service.py
    - critical_path_enabled/style_validation_enabled/fallback_response: core/orchestrator.py
    - dependency_policy: core/executor.py
    - langsmith_*: tracing in runtime and langsmith hooks
    """
    model_config = SettingsConfigDict(extra="ignore", case_sensitive=False, populate_by_name=True)

    # Matching
    match_threshold: float = Field(default=0.7, alias="CASCADE_MATCH_THRESHOLD")
    match_batch_size: int = Field(default=5, alias="CASCADE_MATCH_BATCH_SIZE")
    match_max_concurrency: int = Field(default=4, alias="CASCADE_MATCH_MAX_CONCURRENCY")
    match_history_window: int = Field(default=5, alias="CASCADE_MATCH_HISTORY_WINDOW")
    match_cache_key_chars: int = Field(default=50, alias="CASCADE_MATCH_CACHE_KEY_CHARS")

    # Model knobs
    matcher_model: str = Field(default="gpt-4o-mini", alias="CASCADE_MATCHER_MODEL")
    classifier_model: str = Field(default="gpt-4o-mini", alias="CASCADE_CLASSIFIER_MODEL")
    classifier_temperature: float = Field(default=0.2, alias="CASCADE_CLASSIFIER_TEMPERATURE")
    planner_model: str = Field(default="gpt-4o-mini", alias="CASCADE_PLANNER_MODEL")
    planner_temperature: float = Field(default=0.3, alias="CASCADE_PLANNER_TEMPERATURE")
    worker_model: str = Field(default="gpt-4o-mini", alias="CASCADE_WORKER_MODEL")
    worker_temperature: float = Field(default=0.7, alias="CASCADE_WORKER_TEMPERATURE")
    validator_model: str = Field(default="gpt-4o-mini", alias="CASCADE_VALIDATOR_MODEL")
    validator_temperature: float = Field(default=0.1, alias="CASCADE_VALIDATOR_TEMPERATURE")
    reasoning_model: str = Field(default="gpt-4o-mini", alias="CASCADE_REASONING_MODEL")
    reasoning_temperature: float = Field(default=0.3, alias="CASCADE_REASONING_TEMPERATURE")
    context_search_model: str = Field(default="gpt-4o-mini", alias="CASCADE_CONTEXT_SEARCH_MODEL")
    context_search_temperature: float = Field(default=0.2, alias="CASCADE_CONTEXT_SEARCH_TEMPERATURE")
    writer_model: str = Field(default="gpt-4o-mini", alias="CASCADE_WRITER_MODEL")
    writer_temperature: float = Field(default=0.7, alias="CASCADE_WRITER_TEMPERATURE")
    style_model: str = Field(default="gpt-4o-mini", alias="CASCADE_STYLE_MODEL")
    style_temperature: float = Field(default=0.2, alias="CASCADE_STYLE_TEMPERATURE")
    request_timeout_seconds: int = Field(default=60, alias="CASCADE_REQUEST_TIMEOUT_SECONDS")

    # Cascade behavior
    critical_path_enabled: bool = Field(default=True, alias="CASCADE_CRITICAL_PATH_ENABLED")
    style_validation_enabled: bool = Field(default=True, alias="CASCADE_STYLE_VALIDATION_ENABLED")
    dependency_policy: str = Field(default="output", alias="CASCADE_DEPENDENCY_POLICY")
    worker_max_tool_steps: int = Field(default=2, alias="CASCADE_WORKER_MAX_TOOL_STEPS")
    default_validation_threshold: float = Field(default=7.0, alias="CASCADE_DEFAULT_VALIDATION_THRESHOLD")
    fallback_response: str = Field(
        default="Sorry, I ran into a small technical problem. Could you repeat your request?",
        alias="CASCADE_FALLBACK_RESPONSE",
    )

    langsmith_tracing: bool = Field(default=False, alias="LANGCHAIN_TRACING_V2")
    langsmith_project: str = Field(default="guideline-cascade", alias="LANGCHAIN_PROJECT")

    @field_validator(
        "match_batch_size",
        "match_max_concurrency",
        "match_history_window",
        "match_cache_key_chars",
        "request_timeout_seconds",
        "worker_max_tool_steps",
    )
    @classmethod
    def _strictly_positive_ints(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be > 0")
        return value

    @field_validator("match_threshold")
    @classmethod
    def _valid_threshold(cls, value: float) -> float:
        if value < 0 or value > 1:
            raise ValueError("must be in [0, 1]")
        return value

    @field_validator("default_validation_threshold")
    @classmethod
    def _valid_validation_threshold(cls, value: float) -> float:
        if value < 0 or value > 10:
            raise ValueError("must be in [0, 10]")
        return value

    @field_validator(
        "classifier_temperature",
        "planner_temperature",
        "worker_temperature",
        "validator_temperature",
        "reasoning_temperature",
        "context_search_temperature",
        "writer_temperature",
        "style_temperature",
    )
    @classmethod
    def _valid_temperature(cls, value: float) -> float:
        if value < 0 or value > 2:
            raise ValueError("must be in [0, 2]")
        return value

    @field_validator("dependency_policy")
    @classmethod
    def _valid_dependency_policy(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"output", "success"}:
            raise ValueError("must be 'output' or 'success'")
        return normalized

    @classmethod
    def from_env(cls) -> "CascadeConfig":
        return cls()
