"""Registry-bound workers and the factory that instantiates them.

Re-exports here provide a shorter import path; __all__ documents the public API.
"""

from typing import Dict

from ..core.config import CascadeConfig
from ..tools.registry import ToolRegistry
from .base import BaseWorker
from .feedback import FeedbackWorker
from .registry import DEFAULT_WORKER_DEFINITIONS, DEFAULT_WORKER_REGISTRY, WorkerRegistry
from .search import SearchWorker
from .support import SupportWorker
from .validation import LightweightValidator
from .visit import VisitWorker

WORKER_TYPES: Dict[str, type[BaseWorker]] = {
    SearchWorker.worker_id: SearchWorker,
    VisitWorker.worker_id: VisitWorker,
    SupportWorker.worker_id: SupportWorker,
    FeedbackWorker.worker_id: FeedbackWorker,
}


def build_workers(
    config: CascadeConfig,
    tools: ToolRegistry,
    registry: WorkerRegistry = DEFAULT_WORKER_REGISTRY,
) -> Dict[str, BaseWorker]:
    """Instantiate one worker per enabled registry entry that has an implementation."""
    return {
        definition.id: WORKER_TYPES[definition.id](config, tools, registry)
        for definition in registry.enabled()
        if definition.id in WORKER_TYPES
    }


__all__ = [
    "BaseWorker",
    "DEFAULT_WORKER_DEFINITIONS",
    "DEFAULT_WORKER_REGISTRY",
    "FeedbackWorker",
    "LightweightValidator",
    "SearchWorker",
    "SupportWorker",
    "VisitWorker",
    "WORKER_TYPES",
    "WorkerRegistry",
    "build_workers",
]
