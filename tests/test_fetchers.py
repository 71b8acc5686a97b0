"""Tests for the issue and question fetchers."""

import unittest
from unittest.mock import MagicMock

import pytest

from feed_ingestor.clients.github_client import GitHubClient
from feed_ingestor.clients.stackexchange_client import StackExchangeClient
from feed_ingestor.collector.fetchers import IssueFetcher, QuestionFetcher
from feed_ingestor.errors import FetchError, MissingFieldError
from feed_ingestor.monitoring.metrics import PrometheusExporter


class TestIssueFetcher(unittest.TestCase):
    """Test cases for the IssueFetcher class."""

    def setUp(self):
        self.mock_client = MagicMock(spec=GitHubClient)
        self.exporter = PrometheusExporter(port=0)
        self.fetcher = IssueFetcher(self.mock_client, self.exporter)

    def test_fetch_maps_issues(self):
        self.mock_client.list_issues.return_value = [
            {"number": 2, "title": "second", "created_at": "2023-01-02T00:00:00Z"},
            {"number": 1, "title": "first", "created_at": "2023-01-01T00:00:00Z"},
        ]

        records = self.fetcher.fetch("golang", "go")

        self.mock_client.list_issues.assert_called_once_with("golang", "go")
        self.assertEqual([r["number"] for r in records], [2, 1])
        self.assertTrue(all(r["repo"] == "go" for r in records))

    def test_counter_increments_once_per_fetch(self):
        self.mock_client.list_issues.return_value = [{"number": 1}]
        before = self.exporter.get_value("github_api_calls_total")

        for _ in range(3):
            self.fetcher.fetch("golang", "go")

        self.assertEqual(self.exporter.get_value("github_api_calls_total"), before + 3)
        self.assertEqual(self.exporter.get_value("stackoverflow_api_calls_total"), 0.0)

    def test_failed_fetch_does_not_count(self):
        self.mock_client.list_issues.side_effect = FetchError("boom", status_code=502)

        with self.assertRaises(FetchError):
            self.fetcher.fetch("golang", "go")
        self.assertEqual(self.exporter.get_value("github_api_calls_total"), 0.0)

    def test_fetch_without_exporter(self):
        self.mock_client.list_issues.return_value = []
        fetcher = IssueFetcher(self.mock_client)
        self.assertEqual(fetcher.fetch("golang", "go"), [])


class TestQuestionFetcher:
    """Test cases for the QuestionFetcher class."""

    @pytest.fixture
    def mock_client(self):
        return MagicMock(spec=StackExchangeClient)

    @pytest.fixture
    def fetcher(self, mock_client, exporter):
        return QuestionFetcher(mock_client, exporter, window_sec=3600, clock=lambda: 1700003600.5)

    def test_window_is_one_hour_before_now(self, fetcher, mock_client):
        mock_client.search_questions.return_value = []

        fetcher.fetch("Go")

        mock_client.search_questions.assert_called_once_with("Go", 1700000000)

    def test_fetch_maps_items(self, fetcher, mock_client):
        mock_client.search_questions.return_value = [
            {"title": "foo", "answers": [{"body": "bar"}]},
        ]

        records = fetcher.fetch("Go")

        assert len(records) == 1
        assert records[0]["title"] == "foo"
        assert records[0]["body"] == "No Body"
        assert records[0]["technology"] == "Go"
        assert records[0]["answers"] == [{"body": "bar"}]

    def test_counter_increments_once_per_fetch(self, fetcher, mock_client, exporter):
        mock_client.search_questions.return_value = [{"title": "foo"}]

        fetcher.fetch("Go")
        fetcher.fetch("Docker")

        assert exporter.get_value("stackoverflow_api_calls_total") == 2.0
        assert exporter.get_value("github_api_calls_total") == 0.0

    def test_missing_title_produces_no_records(self, fetcher, mock_client, exporter):
        mock_client.search_questions.return_value = [{"title": "ok"}, {"body": "untitled"}]

        with pytest.raises(MissingFieldError):
            fetcher.fetch("Go")
        assert exporter.get_value("stackoverflow_api_calls_total") == 0.0

    def test_request_duration_is_observed(self, fetcher, mock_client, exporter):
        mock_client.search_questions.return_value = []

        fetcher.fetch("Go")

        count = exporter.get_value("feed_ingestor_request_duration_seconds_count", {"api": "stackexchange"})
        assert count == 1.0

    def test_default_clock_uses_wall_time(self, mocker, mock_client):
        mocker.patch("feed_ingestor.collector.fetchers.time.time", return_value=1700007200.0)
        mock_client.search_questions.return_value = []
        fetcher = QuestionFetcher(mock_client)

        fetcher.fetch("Go")

        mock_client.search_questions.assert_called_once_with("Go", 1700003600)
