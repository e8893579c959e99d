"""Reasoning specialist: free-text analysis parsed into conclusion, data and confidence."""

import re
from typing import Any, Dict

from ..core.logging import get_logger
from ..core.parsing import message_text
from ..core.types import ReasoningOutput, SpecialistInput
from ..prompts import reasoning as reasoning_prompts

logger = get_logger(__name__)

_REASONING_RE = re.compile(r"REASONING:\s*([\s\S]*?)(?=CONCLUSION:|EXTRACTED_DATA:|CONFIDENCE:|$)", re.IGNORECASE)
_CONCLUSION_RE = re.compile(r"CONCLUSION:\s*([\s\S]*?)(?=EXTRACTED_DATA:|CONFIDENCE:|$)", re.IGNORECASE)
_DATA_RE = re.compile(r"EXTRACTED_DATA:\s*([\s\S]*?)(?=CONFIDENCE:|$)", re.IGNORECASE)
_CONFIDENCE_RE = re.compile(r"CONFIDENCE:\s*([\d.]+)", re.IGNORECASE)
_KEY_VALUE_RE = re.compile(r"^(\w+):\s*(.+)$")


def _coerce_value(raw: str) -> Any:
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        number = float(raw)
    except ValueError:
        return raw
    return int(number) if number.is_integer() and "." not in raw else number


def parse_reasoning(text: str) -> Dict[str, Any]:
    """Split a sectioned reply; unstructured text becomes the reasoning with its first line as conclusion."""
    reasoning_match = _REASONING_RE.search(text)
    conclusion_match = _CONCLUSION_RE.search(text)
    reasoning = reasoning_match.group(1).strip() if reasoning_match else ""
    conclusion = conclusion_match.group(1).strip() if conclusion_match else ""

    extracted: Dict[str, Any] = {}
    data_match = _DATA_RE.search(text)
    if data_match:
        for line in data_match.group(1).strip().splitlines():
            pair = _KEY_VALUE_RE.match(line.strip())
            if pair:
                extracted[pair.group(1).strip()] = _coerce_value(pair.group(2).strip())

    confidence = 0.5
    confidence_match = _CONFIDENCE_RE.search(text)
    if confidence_match:
        try:
            confidence = float(confidence_match.group(1))
        except ValueError:
            confidence = 0.5
        if not 0 <= confidence <= 1:
            confidence = 0.5

    if not reasoning and not conclusion:
        reasoning = text
        conclusion = text.split("\n")[0] or text[:200]
    return {"reasoning": reasoning, "conclusion": conclusion, "extracted_data": extracted, "confidence": confidence}


def run_reasoning(*, model, payload: SpecialistInput) -> ReasoningOutput:
    try:
        response = model.invoke(reasoning_prompts.build_reasoning_prompt(payload))
        parsed = parse_reasoning(message_text(response))
    except Exception as exc:
        logger.warning("reasoning failed for task %s: %s", payload.task.id, exc)
        return ReasoningOutput(task_id=payload.task.id, success=False, error=str(exc) or "Reasoning failed")
    return ReasoningOutput(task_id=payload.task.id, success=True, **parsed)
