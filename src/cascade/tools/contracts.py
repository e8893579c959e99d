"""Typed contracts for host-provided tools."""

from typing import Any, Callable, Optional, Type, TypedDict

from langchain_core.tools import StructuredTool
from pydantic import BaseModel


class ToolSchema(TypedDict):
    description: str
    parameters: str


def host_tool(
    name: str,
    description: str,
    func: Callable[..., Any],
    args_schema: Optional[Type[BaseModel]] = None,
) -> StructuredTool:
    """Wrap a host callable as a LangChain tool that workers can bind and invoke."""
    return StructuredTool.from_function(
        func=func,
        name=name,
        description=description,
        args_schema=args_schema,
    )
