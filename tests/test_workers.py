import os
import unittest

from pydantic import BaseModel, Field

from src.cascade.core.config import CascadeConfig
from src.cascade.core.errors import ToolExecutionError, WorkerNotFoundError
from src.cascade.core.schemas import ValidationOutput
from src.cascade.core.types import (
    ChatMessage,
    GuidelineMatch,
    PlanTask,
    TaskType,
    ToolExecution,
    WorkerDefinition,
    WorkerExecutionContext,
)
from src.cascade.guidelines import DEFAULT_GUIDELINES
from src.cascade.tools import ToolRegistry, host_tool, missing_tool_names
from src.cascade.workers import (
    DEFAULT_WORKER_REGISTRY,
    FeedbackWorker,
    LightweightValidator,
    SearchWorker,
    SupportWorker,
    VisitWorker,
    WorkerRegistry,
    build_workers,
)
from src.cascade.workers.base import DEGRADED_SCORE

from tests.fakes import FakeChatModel, tool_call_message


def setUpModule():
    os.environ["LANGCHAIN_TRACING_V2"] = "false"


def _match(guideline_id):
    guideline = next(g for g in DEFAULT_GUIDELINES if g.id == guideline_id)
    return GuidelineMatch(guideline=guideline, score=0.9, reason="matched")


def _context(*guideline_ids, message="Show me flats in Palermo under 500k"):
    return WorkerExecutionContext(
        user_message=message,
        messages=[ChatMessage(role="user", content=message)],
        active_guidelines=[_match(guideline_id) for guideline_id in guideline_ids],
        task=PlanTask(id="task_1", step=1, description="Search", type=TaskType.WORKER_CALL, worker_id="search_worker"),
        previous_task_results={"task_0": "[REASONING]\nConclusion: zone Palermo"},
        context_variables={"current_date": "2026-10-18"},
    )


class SearchArgs(BaseModel):
    zone: str = Field(description="Neighbourhood to search in")


class PropertyArgs(BaseModel):
    id: str


class VisitArgs(BaseModel):
    property_id: str


def _tools(calls):
    def search(zone: str):
        calls.append({"zone": zone})
        return {"success": True, "properties": [{"id": "p1", "zone": zone}]}

    def broken(id: str):
        raise RuntimeError("backend down")

    def escalate():
        return {"success": True}

    return ToolRegistry(
        [
            host_tool("search_properties", "Search properties", search, SearchArgs),
            host_tool("get_property_info", "Property details", broken, PropertyArgs),
            host_tool("get_help", "Escalate", escalate),
        ]
    )


def _visit_tools(calls):
    def availability(property_id: str):
        calls.append("get_availability")
        return {"success": True, "slots": ["2026-10-20T10:00"]}

    def create_visit(property_id: str):
        calls.append("create_visit")
        return {"success": True, "visit_id": "v1"}

    return ToolRegistry(
        [
            host_tool("get_availability", "Free visit slots", availability, VisitArgs),
            host_tool("create_visit", "Book a visit", create_visit, VisitArgs),
        ]
    )


def _validator_model(*outputs):
    return FakeChatModel(structured={ValidationOutput: list(outputs)})


class WorkerRegistryTests(unittest.TestCase):
    def test_duplicate_ids_are_rejected(self):
        definition = WorkerDefinition(
            id="w",
            name="W",
            description="d",
            associated_guideline_ids=frozenset(),
            tool_names=frozenset(),
        )
        with self.assertRaises(ValueError):
            WorkerRegistry([definition, definition])

    def test_lookup_helpers(self):
        registry = DEFAULT_WORKER_REGISTRY
        self.assertIn("search_worker", registry)
        self.assertEqual(registry.find_worker_for_guideline("cancel_visit").id, "visit_worker")
        self.assertIsNone(registry.find_worker_for_guideline("greeting"))
        active = registry.active_workers_for(["collect_feedback", "greeting", "search_properties", "collect_feedback"])
        self.assertEqual([worker.id for worker in active], ["feedback_worker", "search_worker"])
        self.assertEqual(registry.get("support_worker").validation_threshold, 8.0)
        self.assertEqual(registry.get("feedback_worker").validation_threshold, 6.0)

    def test_build_workers_instantiates_every_enabled_worker(self):
        workers = build_workers(CascadeConfig(), ToolRegistry())
        self.assertEqual(set(workers), {"search_worker", "visit_worker", "support_worker", "feedback_worker"})

    def test_worker_without_registry_entry_raises(self):
        with self.assertRaises(WorkerNotFoundError):
            SearchWorker(CascadeConfig(), ToolRegistry(), WorkerRegistry([]))


class ToolRegistryTests(unittest.TestCase):
    def test_tool_errors_are_wrapped(self):
        tools = _tools([])
        with self.assertRaises(ToolExecutionError) as ctx:
            tools.execute("get_property_info", {"id": "p1"})
        self.assertIn("backend down", str(ctx.exception))
        with self.assertRaises(ToolExecutionError):
            tools.execute("unknown", {})

    def test_selection_and_descriptions(self):
        tools = _tools([])
        selected = tools.select(["search_properties", "absent"])
        self.assertEqual([tool.name for tool in selected], ["search_properties"])
        described = tools.describe(["search_properties", "get_help"])
        self.assertEqual(described["search_properties"]["description"], "Search properties")
        self.assertIn("zone", described["search_properties"]["parameters"])
        self.assertEqual(described["get_help"]["parameters"], "No parameters defined")

    def test_execute_invokes_tool_with_validated_args(self):
        calls = []
        tools = _tools(calls)
        result = tools.execute("search_properties", {"zone": "Palermo"})
        self.assertEqual(calls, [{"zone": "Palermo"}])
        self.assertEqual(result["properties"][0]["zone"], "Palermo")
        self.assertEqual(missing_tool_names(tools, ["get_help", "log_feedback"]), ["log_feedback"])


class LightweightValidatorTests(unittest.TestCase):
    def test_no_tools_auto_passes(self):
        validator = LightweightValidator(CascadeConfig(), "search_worker", 7.0)
        validator._model = FakeChatModel()
        verdict = validator.validate("Here you go", _context("search_properties"), [])
        self.assertTrue(verdict.is_valid)
        self.assertEqual(verdict.score, 8.0)

    def test_threshold_and_blank_feedback(self):
        validator = LightweightValidator(CascadeConfig(), "support_worker", 8.0)
        validator._model = _validator_model(ValidationOutput(score=7.5, feedback="   "))
        execution = ToolExecution(tool_name="get_help", args={}, result={"success": True}, timestamp=0.0)
        verdict = validator.validate("Escalated", _context("get_human_help"), [execution])
        self.assertFalse(verdict.is_valid)
        self.assertIsNone(verdict.feedback)


class BaseWorkerTests(unittest.TestCase):
    def setUp(self):
        self.config = CascadeConfig()
        self.calls = []
        self.worker = SearchWorker(self.config, _tools(self.calls))
        self.model = FakeChatModel()
        self.worker._model = self.model

    def test_inactive_worker_returns_trivial_success(self):
        result = self.worker.execute(_context("greeting"))
        self.assertEqual(result.status, "success")
        self.assertEqual(result.response, "")
        self.assertEqual(result.validation.score, 10.0)
        self.assertEqual(result.validation.iterations, 0)
        self.assertEqual(self.model.prompts, [])

    def test_tool_call_then_valid_answer_in_one_iteration(self):
        self.model.responses = [
            tool_call_message("search_properties", {"zone": "Palermo"}),
            "I found one flat in Palermo.",
        ]
        self.worker.validator._model = _validator_model(ValidationOutput(score=9.0))
        result = self.worker.execute(_context("search_properties"))

        self.assertEqual(result.status, "success")
        self.assertEqual(result.response, "I found one flat in Palermo.")
        self.assertEqual(result.validation.iterations, 1)
        self.assertTrue(result.validation.passed)
        self.assertEqual(self.calls, [{"zone": "Palermo"}])
        self.assertEqual([tool.tool_name for tool in result.tools_executed], ["search_properties"])
        self.assertEqual(result.metadata.activated_guidelines, ["search_properties"])
        self.assertIn("search_properties", result.validation.guidelines_criteria)
        bound = {tool.name for tool in self.model.bound_tools}
        self.assertEqual(bound, {"search_properties", "get_property_info"})

        system_prompt = self.model.prompts[0][0][1]
        self.assertIn("zone Palermo", system_prompt)
        self.assertIn("2026-10-18", system_prompt)

    def test_low_score_with_feedback_retries_once(self):
        self.model.responses = [
            tool_call_message("search_properties", {"zone": "Belgrano"}),
            "Flats in Belgrano.",
            tool_call_message("search_properties", {"zone": "Palermo"}, call_id="call_2"),
            "Flats in Palermo.",
        ]
        self.worker.validator._model = _validator_model(
            ValidationOutput(score=3.0, feedback="Use zone=Palermo"),
            ValidationOutput(score=4.0, feedback="still off"),
        )
        result = self.worker.execute(_context("search_properties"))

        self.assertEqual(result.status, "success")
        self.assertEqual(result.response, "Flats in Palermo.")
        self.assertEqual(result.validation.iterations, 2)
        self.assertFalse(result.validation.passed)
        self.assertEqual(result.validation.score, 4.0)
        self.assertIn("Use zone=Palermo", self.model.prompts[2][0][1])

    def test_low_score_without_feedback_keeps_first_answer(self):
        self.model.responses = [tool_call_message("search_properties", {"zone": "x"}), "Something."]
        self.worker.validator._model = _validator_model(ValidationOutput(score=2.0))
        result = self.worker.execute(_context("search_properties"))
        self.assertEqual(result.status, "success")
        self.assertEqual(result.validation.iterations, 1)
        self.assertEqual(result.validation.score, 2.0)

    def test_empty_response_after_validation_is_failed(self):
        self.model.responses = [tool_call_message("search_properties", {"zone": "x"}), ""]
        self.worker.validator._model = _validator_model(ValidationOutput(score=1.0))
        result = self.worker.execute(_context("search_properties"))
        self.assertEqual(result.status, "failed")

    def test_exception_without_response_fails_with_zero_score(self):
        self.model.responses = [RuntimeError("model unavailable")]
        result = self.worker.execute(_context("search_properties"))
        self.assertEqual(result.status, "failed")
        self.assertEqual(result.validation.score, 0.0)
        self.assertEqual(result.validation.iterations, 1)
        self.assertEqual(result.error, "model unavailable")

    def test_exception_on_retry_keeps_first_response_degraded(self):
        self.model.responses = [
            tool_call_message("search_properties", {"zone": "x"}),
            "First answer.",
            RuntimeError("timeout"),
        ]
        self.worker.validator._model = _validator_model(ValidationOutput(score=3.0, feedback="try again"))
        result = self.worker.execute(_context("search_properties"))
        self.assertEqual(result.status, "success")
        self.assertEqual(result.response, "First answer.")
        self.assertEqual(result.validation.score, DEGRADED_SCORE)
        self.assertEqual(result.validation.iterations, 2)
        self.assertEqual(result.error, "timeout")

    def test_failing_or_unavailable_tools_are_recorded_not_raised(self):
        message = tool_call_message("get_property_info", {"id": "p1"})
        message.tool_calls.append({"name": "create_visit", "args": {}, "id": "call_2", "type": "tool_call"})
        self.model.responses = [message, "Sorry, details are unavailable."]
        self.worker.validator._model = _validator_model(ValidationOutput(score=8.0))
        result = self.worker.execute(_context("search_properties"))
        self.assertEqual(result.status, "success")
        self.assertEqual(len(result.tools_executed), 2)
        for execution in result.tools_executed:
            self.assertFalse(execution.result["success"])
        self.assertIn("backend down", result.tools_executed[0].result["error"])
        self.assertIn("not available", result.tools_executed[1].result["error"])

    def test_tool_calls_of_last_step_still_run(self):
        self.model.responses = [
            tool_call_message("search_properties", {"zone": "a"}),
            tool_call_message("search_properties", {"zone": "b"}, call_id="call_2", content="Partial answer."),
        ]
        self.worker.validator._model = _validator_model(ValidationOutput(score=9.0))
        result = self.worker.execute(_context("search_properties"))
        self.assertEqual(len(self.model.prompts), 2)
        self.assertEqual(result.response, "Partial answer.")
        self.assertEqual(self.calls, [{"zone": "a"}, {"zone": "b"}])
        self.assertEqual(len(result.tools_executed), 2)

    def test_single_tool_step_still_runs_requested_tools(self):
        config = self.config.model_copy(update={"worker_max_tool_steps": 1})
        worker = SearchWorker(config, _tools(self.calls))
        worker._model = FakeChatModel(
            responses=[tool_call_message("search_properties", {"zone": "Palermo"}, content="Searching.")]
        )
        worker.validator._model = _validator_model(ValidationOutput(score=9.0))
        result = worker.execute(_context("search_properties"))
        self.assertEqual(len(worker._model.prompts), 1)
        self.assertEqual(self.calls, [{"zone": "Palermo"}])
        self.assertEqual(result.response, "Searching.")

    def test_visit_booking_runs_availability_then_creation(self):
        calls = []
        worker = VisitWorker(self.config, _visit_tools(calls))
        worker._model = FakeChatModel(
            responses=[
                tool_call_message("get_availability", {"property_id": "p1"}),
                tool_call_message("create_visit", {"property_id": "p1"}, call_id="call_2", content="Visit booked."),
            ]
        )
        worker.validator._model = _validator_model(ValidationOutput(score=9.0))
        result = worker.execute(_context("schedule_visit", message="Book a visit to p1 tomorrow"))
        self.assertEqual(calls, ["get_availability", "create_visit"])
        self.assertEqual([tool.tool_name for tool in result.tools_executed], ["get_availability", "create_visit"])
        self.assertEqual(result.status, "success")
        self.assertEqual(result.response, "Visit booked.")


class SupportWorkerTests(unittest.TestCase):
    def test_logs_when_escalation_tool_not_used(self):
        worker = SupportWorker(CascadeConfig(), _tools([]))
        worker._model = FakeChatModel(responses=["I will check with the owner."])
        with self.assertLogs("src.cascade.workers.support", level="WARNING") as logs:
            result = worker.execute(_context("get_human_help", message="Can I talk to the owner?"))
        self.assertEqual(result.status, "success")
        self.assertTrue(any("get_help" in line for line in logs.output))

    def test_feedback_worker_without_host_tool_binds_nothing(self):
        worker = FeedbackWorker(CascadeConfig(), ToolRegistry())
        worker._model = FakeChatModel(responses=["Thanks for the feedback!"])
        result = worker.execute(_context("collect_feedback", message="The flat was lovely"))
        self.assertEqual(result.response, "Thanks for the feedback!")
        self.assertIsNone(worker._model.bound_tools)


if __name__ == "__main__":
    unittest.main()
