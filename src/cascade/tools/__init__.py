"""Tool-invocation capability used by workers.

Re-exports here provide a shorter import path; __all__ documents the public API.
"""

from .contracts import ToolSchema, host_tool
from .registry import ToolRegistry, missing_tool_names

__all__ = ["ToolRegistry", "ToolSchema", "host_tool", "missing_tool_names"]
