import os
import unittest

from src.cascade.core.config import CascadeConfig
from src.cascade.core.schemas import ContextSearchResultOutput, FoundItemOutput, StyleOutput
from src.cascade.core.types import (
    ActionPlan,
    ChatMessage,
    PlanTask,
    SpecialistInput,
    TaskType,
    WriterInput,
)
from src.cascade.specialists import Specialists, apply_quick_fixes, parse_reasoning

from tests.fakes import FakeChatModel, worker_result


def setUpModule():
    os.environ["LANGCHAIN_TRACING_V2"] = "false"


def _payload(task_type=TaskType.REASONING):
    return SpecialistInput(
        task=PlanTask(id="task_1", step=1, description="Work out the zone", type=task_type),
        user_message="the one in Palermo",
        messages=[
            ChatMessage(role="assistant", content="I found flats in Palermo and Belgrano."),
            ChatMessage(role="user", content="the one in Palermo"),
        ],
        active_guidelines=[],
        previous_task_results={"task_0": "Found p1 in Palermo"},
    )


class ParseReasoningTests(unittest.TestCase):
    def test_sectioned_reply(self):
        parsed = parse_reasoning(
            "REASONING: The user picked the Palermo listing.\n"
            "CONCLUSION: property_id is p1\n"
            "EXTRACTED_DATA:\nproperty_id: p1\nbedrooms: 2\nfurnished: true\n"
            "CONFIDENCE: 0.85"
        )
        self.assertEqual(parsed["reasoning"], "The user picked the Palermo listing.")
        self.assertEqual(parsed["conclusion"], "property_id is p1")
        self.assertEqual(parsed["extracted_data"], {"property_id": "p1", "bedrooms": 2, "furnished": True})
        self.assertEqual(parsed["confidence"], 0.85)

    def test_out_of_range_confidence_resets_to_default(self):
        parsed = parse_reasoning("REASONING: r\nCONCLUSION: c\nCONFIDENCE: 7")
        self.assertEqual(parsed["confidence"], 0.5)

    def test_unstructured_text_uses_first_line_as_conclusion(self):
        parsed = parse_reasoning("It is probably p1.\nMore detail here.")
        self.assertEqual(parsed["conclusion"], "It is probably p1.")
        self.assertEqual(parsed["reasoning"], "It is probably p1.\nMore detail here.")
        self.assertEqual(parsed["confidence"], 0.5)
        self.assertEqual(parsed["extracted_data"], {})


class SpecialistsTests(unittest.TestCase):
    def setUp(self):
        self.specialists = Specialists(CascadeConfig())

    def test_reason_success_includes_previous_results_in_prompt(self):
        model = FakeChatModel(responses=["REASONING: r\nCONCLUSION: p1\nCONFIDENCE: 0.9"])
        self.specialists._reasoning_model = model
        output = self.specialists.reason(_payload())
        self.assertTrue(output.success)
        self.assertEqual(output.task_id, "task_1")
        self.assertEqual(output.conclusion, "p1")
        self.assertIn("Found p1 in Palermo", str(model.prompts[0]))

    def test_reason_failure_is_reported_not_raised(self):
        self.specialists._reasoning_model = FakeChatModel(responses=[RuntimeError("rate limited")])
        output = self.specialists.reason(_payload())
        self.assertFalse(output.success)
        self.assertEqual(output.error, "rate limited")

    def test_context_search_maps_found_items(self):
        self.specialists._context_search_model = FakeChatModel(
            structured={
                ContextSearchResultOutput: [
                    ContextSearchResultOutput(
                        summary="The user refers to p1",
                        confidence=0.8,
                        found_items=[FoundItemOutput(type="property", content="p1 in Palermo", source="assistant")],
                    )
                ]
            }
        )
        output = self.specialists.search_context(_payload(TaskType.CONTEXT_SEARCH))
        self.assertTrue(output.success)
        self.assertEqual(output.found_items[0].type, "property")
        self.assertEqual(output.found_items[0].source, "assistant")

    def test_context_search_failure_is_reported(self):
        self.specialists._context_search_model = FakeChatModel(
            structured={ContextSearchResultOutput: [ValueError("bad json")]}
        )
        output = self.specialists.search_context(_payload(TaskType.CONTEXT_SEARCH))
        self.assertFalse(output.success)
        self.assertEqual(output.error, "bad json")

    def test_compose_lists_successful_workers(self):
        model = FakeChatModel(responses=["Here are two flats."])
        self.specialists._writer_model = model
        payload = WriterInput(
            user_message="flats?",
            messages=[ChatMessage(role="user", content="flats?")],
            active_guidelines=[],
            worker_results=[
                worker_result("search_worker", response="Found 2 flats"),
                worker_result("visit_worker", status="failed", response="", error="no slots"),
            ],
            plan=ActionPlan(tasks=[], reasoning="search"),
            rag_context="Deposit is two months.",
            context_variables={"current_date": "2026-10-18"},
        )
        output = self.specialists.compose(payload)
        self.assertEqual(output.response, "Here are two flats.")
        self.assertEqual(output.used_worker_results, ["search_worker"])
        context = model.prompts[0][1][1]
        self.assertIn("Found 2 flats", context)
        self.assertIn("failed (no slots)", context)
        self.assertIn("Deposit is two months.", context)
        self.assertEqual(model.prompts[0][-1], ("human", "flats?"))

    def test_compose_rejects_empty_reply(self):
        self.specialists._writer_model = FakeChatModel(responses=["   "])
        payload = WriterInput(
            user_message="hi",
            messages=[],
            active_guidelines=[],
            worker_results=[],
            plan=ActionPlan(tasks=[], direct_to_writer=True),
        )
        with self.assertRaises(RuntimeError):
            self.specialists.compose(payload)


class StyleTests(unittest.TestCase):
    def setUp(self):
        self.specialists = Specialists(CascadeConfig())

    def test_quick_fixes(self):
        fixed = apply_quick_fixes("Hello\n\n\n\nLook: ![](http://img/1.png)  ")
        self.assertEqual(fixed, "Hello\n\nLook: ![Image](http://img/1.png)")

    def test_correction_is_applied(self):
        self.specialists._style_model = FakeChatModel(
            structured={StyleOutput: [StyleOutput(score=6.0, corrected_response="Hi! How can I help?")]}
        )
        result = self.specialists.validate_style("hi how can i help", "hola", [])
        self.assertTrue(result.was_corrected)
        self.assertEqual(result.response, "Hi! How can I help?")
        self.assertEqual(result.score, 6.0)

    def test_empty_correction_keeps_reply(self):
        self.specialists._style_model = FakeChatModel(structured={StyleOutput: [StyleOutput(score=9.0)]})
        result = self.specialists.validate_style("All good.", "hola", [])
        self.assertFalse(result.was_corrected)
        self.assertEqual(result.response, "All good.")

    def test_validator_error_passes_original_through(self):
        self.specialists._style_model = FakeChatModel(structured={StyleOutput: [RuntimeError("down")]})
        result = self.specialists.validate_style("Original reply.", "hola", [], {"current_date": "2026-10-18"})
        self.assertFalse(result.was_corrected)
        self.assertEqual(result.response, "Original reply.")


if __name__ == "__main__":
    unittest.main()
