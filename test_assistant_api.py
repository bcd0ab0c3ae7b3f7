import os
import unittest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from board_assistant.core.context import AnalyticsContext
from board_assistant.core.errors import BoardAssistantError
from board_assistant.models.board import BoardSnapshot
from board_assistant.models.reports import (
    CardTimeline,
    HealthLevel,
    ListHealthReport,
    Problem,
    ProblemType,
    Recommendation,
)
import main
from main import app, get_context, get_default_board


NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class AssistantApiTestCase(unittest.TestCase):
    def setUp(self):
        self.ctx = AnalyticsContext(trello=None, clock=lambda: NOW)
        self.default_board = None
        app.dependency_overrides[get_context] = lambda: self.ctx
        app.dependency_overrides[get_default_board] = lambda: self.default_board
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()


class TestHealthEndpoint(AssistantApiTestCase):
    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})


class TestAnalyticsRoutes(AssistantApiTestCase):
    def _list_report(self):
        return ListHealthReport(
            board_name="Organisation",
            list_name="À faire",
            generated_at=NOW,
            health=HealthLevel.GOOD,
            problems=[Problem(type=ProblemType.OVERDUE, card_id="c1", card_name="Relance", list_name="À faire")],
            recommendations=[Recommendation(action="shiftDueDates", card_id="c1", list_name="À faire",
                                            suggested_value={"days": 3})],
        )

    def test_list_audit_accepts_snake_case_arguments(self):
        with patch("main.analyze_list", AsyncMock(return_value=self._list_report())) as analyze:
            response = self.client.post(
                "/analytics/list-audit", json={"board_name": " Organisation ", "list_name": "À faire"}
            )

        self.assertEqual(response.status_code, 200)
        analyze.assert_awaited_once_with(self.ctx, "Organisation", "À faire")
        body = response.json()
        self.assertEqual(body["boardName"], "Organisation")
        self.assertEqual(body["listName"], "À faire")
        self.assertEqual(body["problems"][0]["cardId"], "c1")
        self.assertEqual(body["recommendations"][0]["suggestedValue"], {"days": 3})

    def test_short_argument_spellings(self):
        with patch("main.analyze_list", AsyncMock(return_value=self._list_report())) as analyze:
            response = self.client.post("/analytics/list-audit", json={"board": "Organisation", "list": "À faire"})

        self.assertEqual(response.status_code, 200)
        analyze.assert_awaited_once_with(self.ctx, "Organisation", "À faire")

    def test_configured_default_board_is_used(self):
        self.default_board = "Organisation"
        snapshot = BoardSnapshot(board_name="Organisation", board_id="a" * 24)
        with patch("main.build_snapshot", AsyncMock(return_value=snapshot)) as build:
            response = self.client.post("/analytics/snapshot", json={})

        self.assertEqual(response.status_code, 200)
        build.assert_awaited_once_with(self.ctx, "Organisation")
        self.assertEqual(response.json()["stats"]["totalCards"], 0)

    def test_missing_board_is_a_bad_request(self):
        with patch("main.build_snapshot", AsyncMock()) as build:
            response = self.client.post("/analytics/snapshot", json={"boardName": "   "})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "invalid_request")
        build.assert_not_awaited()

    def test_history_forwards_window(self):
        with patch("main.audit_history", AsyncMock(side_effect=BoardAssistantError.not_found("Board", "Ghost"))) as audit:
            response = self.client.post(
                "/analytics/history",
                json={"boardName": "Ghost", "since": "2026-03-01T00:00:00Z", "before": "2026-03-10T00:00:00Z"},
            )

        audit.assert_awaited_once_with(
            self.ctx, "Ghost", since="2026-03-01T00:00:00Z", before="2026-03-10T00:00:00Z"
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "not_found")
        self.assertEqual(response.json()["details"]["name"], "Ghost")

    def test_card_history_aliases_and_ambiguity(self):
        failure = BoardAssistantError.ambiguous_match("Facture", 2)
        with patch("main.card_timeline", AsyncMock(side_effect=failure)) as timeline:
            response = self.client.post(
                "/analytics/card-history", json={"boardName": "Organisation", "taskName": "Facture", "limit": 20}
            )

        timeline.assert_awaited_once_with(self.ctx, "Organisation", "Facture", since=None, before=None, limit=20)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "ambiguous_match")

    def test_card_history_success(self):
        timeline = CardTimeline(board_name="Organisation", card_id="c1", card_name="Facture")
        with patch("main.card_timeline", AsyncMock(return_value=timeline)):
            response = self.client.post("/analytics/card-history", json={"board": "Organisation", "card": "Facture"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["cardName"], "Facture")

    def test_upstream_and_generation_failures_are_server_errors(self):
        with patch(
            "main.suggest_cleanup",
            AsyncMock(side_effect=BoardAssistantError.upstream_failure("Trello down", status_code=503)),
        ):
            cleanup = self.client.post("/analytics/cleanup", json={"boardName": "Organisation"})
        with patch(
            "main.generate_summary",
            AsyncMock(side_effect=BoardAssistantError.generation_unavailable("OPENAI_API_KEY is not set")),
        ):
            summary = self.client.post("/analytics/summary", json={"boardName": "Organisation"})

        self.assertEqual(cleanup.status_code, 500)
        self.assertEqual(cleanup.json(), {"error": "upstream_failure", "message": "Trello down"})
        self.assertEqual(summary.status_code, 500)
        self.assertEqual(summary.json()["error"], "generation_unavailable")

    def test_limit_out_of_range_is_rejected(self):
        response = self.client.post(
            "/analytics/card-history", json={"boardName": "Organisation", "cardName": "Facture", "limit": 0}
        )
        self.assertEqual(response.status_code, 422)

    def test_failure_log_carries_the_board(self):
        failure = BoardAssistantError.upstream_failure("Trello down", status_code=503)
        with patch("main.suggest_cleanup", AsyncMock(side_effect=failure)), patch("main.log_warn") as warn:
            self.client.post("/analytics/cleanup", json={"boardName": "Organisation"})
            self.client.post("/analytics/cleanup", json={})

        self.assertEqual(warn.call_count, 2)
        self.assertEqual(warn.call_args_list[0].kwargs["board_name"], "Organisation")
        self.assertEqual(warn.call_args_list[0].kwargs["upstream_status"], 503)
        self.assertIsNone(warn.call_args_list[1].kwargs["board_name"])
        self.assertEqual(warn.call_args_list[1].kwargs["kind"], "invalid_request")


class TestServerRunner(unittest.TestCase):
    def test_run_serves_the_app_with_uvicorn(self):
        with patch.dict(os.environ, {"HOST": "127.0.0.1", "PORT": "9001"}), patch("main.uvicorn.run") as serve:
            main.run()

        serve.assert_called_once_with(app, host="127.0.0.1", port=9001)


if __name__ == "__main__":
    unittest.main()
