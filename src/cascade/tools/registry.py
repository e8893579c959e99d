"""Registry of host tools that workers may invoke."""

import json
from typing import Any, Dict, Iterable, List

from langchain_core.tools import BaseTool

from ..core.errors import ToolExecutionError
from .contracts import ToolSchema


class ToolRegistry:
    """Name-keyed tool catalog; the only way workers reach side effects."""

    def __init__(self, tools: Iterable[BaseTool] = ()):
        self._tools: Dict[str, BaseTool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: BaseTool) -> None:
        self._tools[tool.name] = tool

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def names(self) -> frozenset[str]:
        return frozenset(self._tools)

    def select(self, names: Iterable[str]) -> List[BaseTool]:
        return [self._tools[name] for name in sorted(set(names)) if name in self._tools]

    def describe(self, names: Iterable[str]) -> Dict[str, ToolSchema]:
        described: Dict[str, ToolSchema] = {}
        for tool in self.select(names):
            properties = tool.args
            described[tool.name] = {
                "description": tool.description,
                "parameters": json.dumps(properties, ensure_ascii=False) if properties else "No parameters defined",
            }
        return described

    def execute(self, name: str, args: Dict[str, Any]) -> Any:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolExecutionError(name, "unknown tool")
        try:
            return tool.invoke(dict(args or {}))
        except ToolExecutionError:
            raise
        except Exception as exc:
            raise ToolExecutionError(name, str(exc)) from exc


def missing_tool_names(registry: ToolRegistry, required: Iterable[str]) -> list[str]:
    available = registry.names()
    return sorted(name for name in set(required) if name not in available)
