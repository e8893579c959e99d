"""Style validator: scores the composed reply and applies a correction when one is returned."""

import re
from typing import Dict, Optional, Sequence

from ..core.logging import get_logger
from ..core.schemas import StyleOutput
from ..core.types import GuidelineMatch, StyleResult
from ..prompts import style as style_prompts

logger = get_logger(__name__)

_EXTRA_BLANK_LINES_RE = re.compile(r"\n{3,}")
_EMPTY_ALT_RE = re.compile(r"!\[\s*\]\(")


def apply_quick_fixes(response: str) -> str:
    fixed = _EXTRA_BLANK_LINES_RE.sub("\n\n", response)
    fixed = _EMPTY_ALT_RE.sub("![Image](", fixed)
    return fixed.strip()


def validate_style(
    *,
    model,
    response: str,
    user_message: str,
    active_guidelines: Sequence[GuidelineMatch],
    context_variables: Optional[Dict[str, str]] = None,
) -> StyleResult:
    prompt = style_prompts.build_style_prompt(response, user_message, active_guidelines, context_variables)
    try:
        output = model.with_structured_output(StyleOutput).invoke(prompt)
    except Exception as exc:
        logger.warning("style validation unavailable, keeping original reply: %s", exc)
        return StyleResult(response=apply_quick_fixes(response), score=0.0, was_corrected=False)
    if output is None:
        return StyleResult(response=apply_quick_fixes(response), score=0.0, was_corrected=False)

    corrected = output.corrected_response.strip()
    if not corrected or corrected == response.strip():
        return StyleResult(response=apply_quick_fixes(response), score=output.score, was_corrected=False)
    return StyleResult(response=apply_quick_fixes(corrected), score=output.score, was_corrected=True)
