import unittest
from unittest.mock import patch, MagicMock
import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fastapi.testclient import TestClient

from event_search.api.app import create_app
from event_search.api.routes import get_orchestrator, get_pipeline
from event_search.models.event import Event
from event_search.models.search import EventsPage
from event_search.services.cache_state import CacheStateStore, CacheStoreError
from event_search.workflows.refresh import ManualRefreshResult, RefreshOrchestrator
from event_search.workflows.search_pipeline import CacheMeta, EventSearchPipeline, SearchResult


class TestEventsEndpoint(unittest.TestCase):

    def setUp(self):
        self.app = create_app()
        self.pipeline = MagicMock()
        self.app.dependency_overrides[get_pipeline] = lambda: self.pipeline
        self.client = TestClient(self.app)

    def test_search_response_shape(self):
        event = Event(
            id="e1",
            title="Jazz night",
            date_start=datetime(2026, 11, 1, 20, 0, tzinfo=timezone.utc),
            latitude=45.47,
            longitude=9.2,
        )
        self.pipeline.search.return_value = SearchResult(
            EventsPage(events=[event], total=1, limit=10, offset=0),
            CacheMeta(hit=True, age_hours=1.5),
        )

        response = self.client.get(
            "/api/events",
            params={"search": "jazz", "dateFrom": "2026-11-01", "lat": 45.46, "lng": 9.19, "radius": 20, "limit": 10},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["total"], 1)
        self.assertEqual(body["limit"], 10)
        self.assertEqual(body["offset"], 0)
        self.assertEqual(body["cache"], {"hit": True, "age_hours": 1.5, "refreshed": False})
        self.assertEqual(body["events"][0]["title"], "Jazz night")
        self.assertEqual(body["events"][0]["dateStart"], "2026-11-01T20:00:00+00:00")
        self.assertEqual(body["events"][0]["mapPosition"], {"lat": 45.47, "lng": 9.2})

        filters = self.pipeline.search.call_args.args[0]
        self.assertEqual(filters.search, "jazz")
        self.assertEqual(filters.date_from, "2026-11-01")
        self.assertEqual(filters.radius, 20)
        self.assertTrue(filters.has_radius)

    def test_defaults(self):
        self.pipeline.search.return_value = SearchResult(EventsPage())
        self.client.get("/api/events")
        filters = self.pipeline.search.call_args.args[0]
        self.assertEqual((filters.limit, filters.offset), (50, 0))
        self.assertFalse(filters.has_radius)

    def test_invalid_date_is_bad_request(self):
        self.pipeline.search.side_effect = ValueError("Invalid isoformat string: 'soon'")
        response = self.client.get("/api/events", params={"dateFrom": "soon"})
        self.assertEqual(response.status_code, 400)

    def test_catalog_failure_is_server_error(self):
        self.pipeline.search.side_effect = RuntimeError("catalog down")
        response = self.client.get("/api/events")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to fetch events"})

    def test_negative_offset_is_rejected(self):
        response = self.client.get("/api/events", params={"offset": -1})
        self.assertEqual(response.status_code, 422)
        self.pipeline.search.assert_not_called()


class TestMalformedExecutionRecord(unittest.TestCase):

    def setUp(self):
        self.executions = MagicMock()
        orchestrator = RefreshOrchestrator(
            store=CacheStateStore(collection=self.executions), trigger_client=MagicMock(), poll_interval=0
        )
        pipeline = EventSearchPipeline(orchestrator, collection=MagicMock(), sleep=MagicMock())
        self.app = create_app()
        self.app.dependency_overrides[get_pipeline] = lambda: pipeline
        self.client = TestClient(self.app)

    @patch('event_search.workflows.search_pipeline.execute_query')
    def test_unknown_status_serves_uncached_results(self, mock_execute_query):
        mock_execute_query.return_value = EventsPage(events=[Event(id="e1", title="Mostra")], total=1)
        self.executions.find_one.return_value = {
            "query_hash": "abc",
            "status": "success",
            "last_executed_at": datetime(2026, 10, 17, 8, 0, tzinfo=timezone.utc),
        }

        response = self.client.get("/api/events")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["total"], 1)
        self.assertEqual(response.json()["cache"], {"hit": False, "age_hours": None, "refreshed": False})

    @patch('event_search.workflows.search_pipeline.execute_query')
    def test_missing_timestamp_serves_uncached_results(self, mock_execute_query):
        mock_execute_query.return_value = EventsPage()
        self.executions.find_one.return_value = {"query_hash": "abc", "status": "completed"}

        response = self.client.get("/api/events")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["cache"]["hit"])


class TestRefreshEndpoint(unittest.TestCase):

    def setUp(self):
        self.app = create_app()
        self.orchestrator = MagicMock()
        self.app.dependency_overrides[get_orchestrator] = lambda: self.orchestrator
        self.client = TestClient(self.app)

    def test_trigger_without_wait(self):
        self.orchestrator.trigger_manual_refresh.return_value = ManualRefreshResult(
            triggered=True, execution_id="exec-1"
        )
        response = self.client.post("/api/refresh")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["executionId"], "exec-1")
        query = self.orchestrator.trigger_manual_refresh.call_args.args[0]
        self.assertEqual(len(query.cities), 12)
        self.assertFalse(self.orchestrator.trigger_manual_refresh.call_args.kwargs["wait"])

    def test_wait_completed(self):
        self.orchestrator.trigger_manual_refresh.return_value = ManualRefreshResult(
            triggered=True, completed=True, execution_id="exec-1"
        )
        response = self.client.post(
            "/api/refresh", json={"cities": ["Milano"], "dateFrom": "2026-11-01", "wait": True}
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])
        query = self.orchestrator.trigger_manual_refresh.call_args.args[0]
        self.assertEqual(query.cities, ["Milano"])
        self.assertEqual(query.date_from, "2026-11-01")

    def test_wait_timeout_is_accepted(self):
        self.orchestrator.trigger_manual_refresh.return_value = ManualRefreshResult(
            triggered=True, completed=False, execution_id="exec-1"
        )
        response = self.client.post("/api/refresh", json={"wait": True})
        self.assertEqual(response.status_code, 202)
        self.assertFalse(response.json()["success"])

    def test_trigger_failure(self):
        self.orchestrator.trigger_manual_refresh.return_value = ManualRefreshResult(triggered=False)
        response = self.client.post("/api/refresh", json={})
        self.assertEqual(response.status_code, 500)

    def test_store_unavailable(self):
        self.orchestrator.trigger_manual_refresh.side_effect = CacheStoreError("gone")
        response = self.client.post("/api/refresh", json={})
        self.assertEqual(response.status_code, 503)

    def test_usage(self):
        response = self.client.get("/api/refresh")
        self.assertEqual(response.json()["usage"]["method"], "POST")


class TestCategoriesEndpoint(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(create_app())

    @patch('event_search.api.routes.list_categories')
    def test_categories(self, mock_list_categories):
        mock_list_categories.return_value = [{"name": "Musica", "count": 3}]
        response = self.client.get("/api/categories")
        self.assertEqual(response.json(), [{"name": "Musica", "count": 3}])

    @patch('event_search.api.routes.list_categories')
    def test_categories_failure(self, mock_list_categories):
        mock_list_categories.side_effect = RuntimeError("down")
        response = self.client.get("/api/categories")
        self.assertEqual(response.status_code, 500)

    def test_health(self):
        self.assertEqual(self.client.get("/health").json()["status"], "healthy")


if __name__ == '__main__':
    unittest.main()
