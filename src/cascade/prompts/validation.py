"""Lightweight tool-execution validation prompt."""

import json
from typing import Dict, Optional, Sequence

from ..core.types import ToolExecution
from ..tools.contracts import ToolSchema

VALIDATION_SYSTEM_PROMPT = """You validate tool executions. Check whether the tools ran correctly for the user's request.

CRITICAL: if a result contains "success": true, the execution SUCCEEDED.

Score 9-10: tool succeeded and parameters are correct
Score 7-8: tool succeeded but parameters could be improved
Score 4-6: significant parameter mismatches
Score 0-3: tool failed or parameters are wrong

If the score is below 7, say in feedback which tool to run with which parameters.
"""

RESULT_PREVIEW_CHARS = 300


def _format_schemas(tool_schemas: Optional[Dict[str, ToolSchema]]) -> str:
    if not tool_schemas:
        return ""
    lines = ["Available tool schemas:"]
    for name, schema in tool_schemas.items():
        lines.append(f"- {name}: {schema['description']}")
        if schema["parameters"] != "No parameters defined":
            lines.append(f"  parameters: {schema['parameters']}")
    return "\n".join(lines) + "\n\n"


def _format_executions(tools_executed: Sequence[ToolExecution]) -> str:
    lines = ["Executed tools:"]
    for idx, tool in enumerate(tools_executed, start=1):
        lines.append(f"{idx}. {tool.tool_name}")
        lines.append(f"   args: {json.dumps(tool.args or {}, ensure_ascii=False, default=str)}")
        if tool.result is not None:
            rendered = tool.result if isinstance(tool.result, str) else json.dumps(tool.result, default=str)
            if len(rendered) > RESULT_PREVIEW_CHARS:
                rendered = rendered[:RESULT_PREVIEW_CHARS] + "..."
            lines.append(f"   result: {rendered}")
    return "\n".join(lines)


def build_validation_prompt(
    user_message: str,
    tools_executed: Sequence[ToolExecution],
    tool_schemas: Optional[Dict[str, ToolSchema]] = None,
):
    human = f'User message:\n"{user_message}"\n\n{_format_schemas(tool_schemas)}{_format_executions(tools_executed)}'
    return [("system", VALIDATION_SYSTEM_PROMPT), ("human", human)]
