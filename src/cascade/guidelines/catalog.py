"""Default rule catalog for a property-rental assistant, plus dynamically generated rules."""

from typing import Optional, Sequence

from ..core.types import Guideline, ValidationCriterion


DEFAULT_GUIDELINES: tuple[Guideline, ...] = (
    Guideline(
        id="greeting",
        condition="The user greets the assistant or opens the conversation without a concrete request.",
        action="Greet back warmly, introduce yourself briefly and ask how you can help.",
        priority=6,
        difficulty="low",
        tags=frozenset({"conversation", "greeting"}),
    ),
    Guideline(
        id="search_properties",
        condition="The user asks for available properties or describes what they are looking for "
        "(zone, price, rooms, pets, amenities).",
        action="Search properties with the criteria the user gave and present the best options.",
        priority=8,
        difficulty="medium",
        tags=frozenset({"search", "properties"}),
        tool_names=frozenset({"search_properties"}),
        validation_criteria=(
            ValidationCriterion(
                name="Criteria fidelity",
                description="Search parameters must reflect every criterion the user stated.",
                weight=40,
                examples=("CORRECT: max_price=500000 when the user says 'up to 500k'",),
            ),
        ),
    ),
    Guideline(
        id="get_property_detail",
        condition="The user asks for more information about a specific property already mentioned.",
        action="Fetch the property details and answer the specific question.",
        priority=7,
        difficulty="medium",
        tags=frozenset({"search", "properties"}),
        tool_names=frozenset({"get_property_info"}),
    ),
    Guideline(
        id="schedule_visit",
        condition="The user wants to visit a property or asks for visit availability.",
        action="Check availability for the property and schedule the visit once a slot is agreed.",
        priority=8,
        difficulty="high",
        tags=frozenset({"visits"}),
        tool_names=frozenset({"get_availability", "create_visit"}),
    ),
    Guideline(
        id="cancel_visit",
        condition="The user wants to cancel or reschedule a visit that was already scheduled.",
        action="Identify the visit and cancel or reschedule it as requested.",
        priority=8,
        difficulty="medium",
        tags=frozenset({"visits"}),
        tool_names=frozenset({"cancel_visit", "reschedule_visit"}),
    ),
    Guideline(
        id="get_human_help",
        condition="The user asks to talk to the owner or a human, or raises a sensitive topic "
        "(price negotiation, pet policy, special contract conditions).",
        action="Escalate to a human with the specific topic and tell the user you will get back to them.",
        priority=9,
        difficulty="medium",
        tags=frozenset({"support", "escalation"}),
        tool_names=frozenset({"get_help"}),
    ),
    Guideline(
        id="collect_feedback",
        condition="The user shares an opinion about a property, a visit, or the service.",
        action="Thank the user and record the feedback.",
        priority=5,
        difficulty="low",
        tags=frozenset({"feedback"}),
        tool_names=frozenset({"log_feedback"}),
    ),
)


def build_context_search_guideline(document_labels: Sequence[str]) -> Optional[Guideline]:
    """Return a context-search rule scoped to the uploaded documents, or None when there are none."""
    labels = [label.strip() for label in document_labels if label and label.strip()]
    if not labels:
        return None
    joined = ", ".join(labels)
    return Guideline(
        id="context_search",
        condition=(
            f"The user asks about topics covered by the uploaded context documents: {joined}. "
            "Only apply when the question is clearly about one of these topics, not for general "
            "questions about properties or visits."
        ),
        action=f"Search the context documents ({joined}) and answer with verified information from them.",
        priority=9,
        difficulty="medium",
        tags=frozenset({"context", "rag", "documents", "dynamic"}),
        tool_names=frozenset({"search_context"}),
        validation_criteria=(
            ValidationCriterion(
                name="Use of document information",
                description="The reply must include specific information taken from the documents when relevant.",
                weight=25,
                examples=(
                    "CORRECT: According to our rental policy, the deposit is two months...",
                    "INCORRECT: Inventing policies that are not in the documents",
                ),
            ),
            ValidationCriterion(
                name="Source citation",
                description="Mention which document the information comes from.",
                weight=15,
            ),
        ),
    )
