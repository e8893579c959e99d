"""Exception types raised and recovered inside the cascade core."""


class CascadeError(RuntimeError):
    pass


class MatchEvaluationError(CascadeError):
    """The generation service returned nothing usable for a guideline evaluation."""


class WorkerNotFoundError(CascadeError):
    def __init__(self, worker_id: str):
        super().__init__(f"Worker '{worker_id}' not found in registry")
        self.worker_id = worker_id


class DependencyUnmetError(CascadeError):
    def __init__(self, task_id: str, missing: list[str]):
        super().__init__("Dependencies not completed")
        self.task_id = task_id
        self.missing = missing


class CriticalPathAbort(CascadeError):
    def __init__(self, task_id: str, worker_id: str):
        super().__init__(f"Critical task {task_id} failed in worker {worker_id}")
        self.task_id = task_id
        self.worker_id = worker_id


class CascadeCancelled(CascadeError):
    def __init__(self, task_id: str):
        super().__init__(f"Cascade cancelled before task {task_id}")
        self.task_id = task_id


class ToolExecutionError(CascadeError):
    def __init__(self, tool_name: str, reason: str):
        super().__init__(f"Tool '{tool_name}' failed: {reason}")
        self.tool_name = tool_name
        self.reason = reason
