"""Style corrector prompt templates and builders."""

from typing import Dict, Optional, Sequence

from ..core.types import GuidelineMatch

STYLE_SYSTEM_PROMPT = """You are a style corrector for replies written by a property-rental agent.
Review the reply and, only if needed, correct it so it follows the style rules.

Style rules:
1. Friendly, professional tone, like a real agent.
2. Never use phrases like "I am an assistant" or "as an AI".
3. Concise, summarised replies.
4. Valid Markdown for images: ![desc](url).
5. Never expose sensitive data (owner phones, exact addresses).
6. Never show property or visit ids.
7. Do not introduce yourself unless the user greeted you.

Critical restrictions:
- NEVER invent properties, prices, features or data that are not in the original reply.
- NEVER add greetings or goodbyes that did not exist.
- NEVER change the meaning or factual content.
- If the reply is already correct, leave corrected_response empty.

Return a score from 0 to 10 and the corrected reply.
"""

STYLE_USER_PROMPT_TEMPLATE = """User message:
{user_message}

Reply to review:
{response}
{guidelines}{variables}"""


def build_style_prompt(
    response: str,
    user_message: str,
    active_guidelines: Sequence[GuidelineMatch],
    context_variables: Optional[Dict[str, str]] = None,
):
    guideline_lines = []
    for match in active_guidelines:
        guideline_lines.append(f"- {match.guideline.id}: {match.guideline.action}")
        for criterion in match.guideline.validation_criteria:
            guideline_lines.append(f"  * {criterion.name} (weight {criterion.weight}): {criterion.description}")
    guidelines = "\nActive guidelines:\n" + "\n".join(guideline_lines) + "\n" if guideline_lines else ""
    variables = ""
    if context_variables:
        variables = "\nContext variables:\n" + "\n".join(f"- {k}: {v}" for k, v in context_variables.items()) + "\n"
    return [
        ("system", STYLE_SYSTEM_PROMPT),
        (
            "human",
            STYLE_USER_PROMPT_TEMPLATE.format(
                user_message=user_message,
                response=response,
                guidelines=guidelines,
                variables=variables,
            ),
        ),
    ]
