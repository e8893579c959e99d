import os
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.schemas import GuidelineModel, MessageRequest
from src.api.service import BackendNotConfiguredError, CascadeAPIService, guideline_from_model
from src.cascade.core.config import CascadeConfig
from src.cascade.core.schemas import BatchEvaluation, IndexedGuidelineEvaluation
from src.cascade.core.types import (
    ActionPlan,
    CascadeMetadata,
    CascadeResult,
    ClassificationResult,
    Guideline,
    ToolExecution,
)
from src.cascade.guidelines import GuidelineMatcher, GuidelineStore
from src.cascade.tools import ToolRegistry, host_tool

from tests.fakes import FakeChatModel, worker_result


def setUpModule():
    os.environ["LANGCHAIN_TRACING_V2"] = "false"


class FakeOrchestrator:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def execute(self, user_message, messages, active_guidelines, glossary_context=None, rag_context=None):
        self.calls.append((user_message, messages, active_guidelines, rag_context))
        if self.error is not None:
            raise self.error
        result = worker_result("search_worker", response="Found p1")
        result.tools_executed = [
            ToolExecution(tool_name="search_properties", args={"zone": "Palermo"}, result={}, timestamp=0.0)
        ]
        return CascadeResult(
            success=True,
            response="Here is p1.",
            metadata=CascadeMetadata(
                classification=ClassificationResult(classification="requires_action", confidence=0.9, reasoning="r"),
                plan=ActionPlan(tasks=[]),
                worker_results=[result],
                writer_iterations=1,
                style_validation_passed=True,
                total_execution_time_ms=12,
                executed_guidelines=[match.guideline.id for match in active_guidelines],
            ),
            trace={"final_state": "completed"},
        )


def _matcher(*batches):
    store = GuidelineStore(
        [Guideline(id="search_properties", condition="user searches", action="search", priority=8)]
    )
    matcher = GuidelineMatcher(CascadeConfig(), store)
    matcher._model = FakeChatModel(structured={BatchEvaluation: list(batches)})
    return matcher


def _applies(confidence=0.9):
    return BatchEvaluation(
        evaluations=[
            IndexedGuidelineEvaluation(guideline_index=1, applies=True, confidence=confidence, reasoning="r")
        ]
    )


class CascadeAPIServiceTests(unittest.TestCase):
    def setUp(self):
        patcher = patch("src.api.service.load_dotenv")
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_message_flows_through_matcher_then_orchestrator(self):
        orchestrator = FakeOrchestrator()
        service = CascadeAPIService(config=CascadeConfig(), matcher=_matcher(_applies()), orchestrator=orchestrator)
        response = service.handle_message(
            MessageRequest(
                message="flats in Palermo",
                history=[{"role": "assistant", "content": "Hi!"}],
                rag_context="docs",
            )
        )
        self.assertTrue(response.success)
        self.assertEqual(response.matched_guidelines, ["search_properties"])
        self.assertEqual(response.workers[0].tools, ["search_properties"])
        self.assertEqual(response.final_state, "completed")
        user_message, messages, matches, rag = orchestrator.calls[0]
        self.assertEqual(user_message, "flats in Palermo")
        self.assertEqual([m.role for m in messages], ["assistant", "user"])
        self.assertEqual(rag, "docs")

    def test_request_threshold_overrides_config(self):
        orchestrator = FakeOrchestrator()
        service = CascadeAPIService(config=CascadeConfig(), matcher=_matcher(_applies(0.6)), orchestrator=orchestrator)
        response = service.handle_message(MessageRequest(message="flats", threshold=0.5))
        self.assertEqual(response.matched_guidelines, ["search_properties"])

    def test_missing_backend_raises_not_configured(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("OPENAI_API_KEY", None)
            service = CascadeAPIService(config=CascadeConfig(), matcher=_matcher())
            self.assertFalse(service.model_configured)
            with self.assertRaises(BackendNotConfiguredError):
                service.handle_message(MessageRequest(message="hi"))
            self.assertEqual(service.health().status, "degraded")

    def test_health_reports_missing_worker_tools(self):
        def escalate():
            return {"success": True}

        tools = ToolRegistry([host_tool("get_help", "Escalate", escalate)])
        service = CascadeAPIService(
            config=CascadeConfig(),
            tools=tools,
            matcher=_matcher(),
            orchestrator=FakeOrchestrator(),
        )
        health = service.health()
        self.assertEqual(health.status, "ok")
        self.assertEqual(health.guideline_count, 1)
        self.assertIn("search_properties", health.missing_tools)
        self.assertNotIn("get_help", health.missing_tools)

    def test_guideline_round_trip_through_models(self):
        payload = GuidelineModel(
            id="pets",
            condition="user asks about pets",
            action="escalate",
            priority=7,
            tags=["support"],
            tool_names=["get_help"],
            validation_criteria=[{"name": "No invention", "description": "Never invent pet rules", "weight": 30}],
        )
        guideline = guideline_from_model(payload)
        self.assertEqual(guideline.tool_names, frozenset({"get_help"}))
        self.assertEqual(guideline.validation_criteria[0].weight, 30)


class APITests(unittest.TestCase):
    def setUp(self):
        patcher = patch("src.api.service.load_dotenv")
        patcher.start()
        self.addCleanup(patcher.stop)
        self.orchestrator = FakeOrchestrator()
        self.service = CascadeAPIService(
            config=CascadeConfig(),
            matcher=_matcher(_applies(), _applies()),
            orchestrator=self.orchestrator,
        )
        self.client = TestClient(create_app(service=self.service))

    def test_app_factory_accepts_injected_service(self):
        app = create_app(service=self.service)
        self.assertIs(app.state.cascade_service, self.service)

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_list_and_add_guidelines(self):
        listed = self.client.get("/guidelines").json()
        self.assertEqual(listed["version"], 0)
        self.assertEqual([g["id"] for g in listed["guidelines"]], ["search_properties"])

        created = self.client.post(
            "/guidelines",
            json={"id": "pets", "condition": "user asks about pets", "action": "escalate", "priority": 7},
        )
        self.assertEqual(created.status_code, 200)
        body = created.json()
        self.assertEqual(body["version"], 1)
        self.assertEqual({g["id"] for g in body["guidelines"]}, {"search_properties", "pets"})

    def test_add_guideline_rejects_invalid_priority(self):
        response = self.client.post(
            "/guidelines",
            json={"id": "bad", "condition": "c", "action": "a", "priority": 42},
        )
        self.assertEqual(response.status_code, 422)

    def test_adding_guideline_invalidates_match_cache(self):
        self.client.post("/messages", json={"message": "flats", "session_id": "s"})
        self.client.post("/guidelines", json={"id": "pets", "condition": "pets", "action": "a", "priority": 2})
        self.service.matcher._model.structured[BatchEvaluation] = [
            BatchEvaluation(
                evaluations=[
                    IndexedGuidelineEvaluation(guideline_index=1, applies=True, confidence=0.9, reasoning="r"),
                    IndexedGuidelineEvaluation(guideline_index=2, applies=True, confidence=0.9, reasoning="r"),
                ]
            )
        ]
        response = self.client.post("/messages", json={"message": "flats", "session_id": "s"})
        self.assertEqual(response.json()["matched_guidelines"], ["search_properties", "pets"])

    def test_post_message(self):
        response = self.client.post("/messages", json={"message": "flats in Palermo"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["response"], "Here is p1.")
        self.assertEqual(body["classification"], "requires_action")
        self.assertEqual(body["workers"][0]["worker_id"], "search_worker")
        self.assertEqual(len(self.orchestrator.calls), 1)

    def test_unexpected_error_maps_to_500(self):
        self.orchestrator.error = RuntimeError("secret internals")
        response = self.client.post("/messages", json={"message": "flats"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Internal server error.")

    def test_unconfigured_backend_maps_to_503(self):
        with patch.object(CascadeAPIService, "handle_message", side_effect=BackendNotConfiguredError("no key")):
            response = self.client.post("/messages", json={"message": "flats"})
        self.assertEqual(response.status_code, 503)


if __name__ == "__main__":
    unittest.main()
