"""Fetchers turning upstream API responses into normalized records."""

import logging
import time
from contextlib import nullcontext
from typing import Callable, List, Optional

from feed_ingestor.clients.github_client import GitHubClient
from feed_ingestor.clients.stackexchange_client import StackExchangeClient
from feed_ingestor.models.mapping import issues_to_records, questions_to_records
from feed_ingestor.models.records import IssueRecord, QuestionRecord
from feed_ingestor.monitoring.metrics import PrometheusExporter

logger = logging.getLogger(__name__)


class IssueFetcher:
    """Fetches all issues of one repository and maps them to IssueRecords."""

    def __init__(self, client: GitHubClient, prometheus_exporter: Optional[PrometheusExporter] = None):
        """
        Initialize the issue fetcher.

        Args:
            client: Authenticated GitHub client
            prometheus_exporter: Exporter whose GitHub call counter is incremented per fetch
        """
        self.client = client
        self.prometheus_exporter = prometheus_exporter

    def fetch(self, owner: str, repo: str) -> List[IssueRecord]:
        """
        Fetch every page of issues for ``owner/repo``.

        Args:
            owner: Repository owner
            repo: Repository name, stored in each record's ``repo`` field

        Returns:
            IssueRecords in page order

        Raises:
            IngestError: Any paging, decoding or field failure; nothing is retried
        """
        timer = self.prometheus_exporter.time_request("github") if self.prometheus_exporter else nullcontext()
        with timer:
            raw_issues = self.client.list_issues(owner, repo)

        records = issues_to_records(raw_issues, repo)

        if self.prometheus_exporter:
            self.prometheus_exporter.record_github_call()
        return records


class QuestionFetcher:
    """Fetches recently active questions for one tag and maps them to QuestionRecords."""

    def __init__(
        self,
        client: StackExchangeClient,
        prometheus_exporter: Optional[PrometheusExporter] = None,
        window_sec: int = 3600,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the question fetcher.

        Args:
            client: Stack Exchange client
            prometheus_exporter: Exporter whose StackOverflow call counter is incremented per fetch
            window_sec: Length of the activity window ending now
            clock: Source of the current Unix time
        """
        self.client = client
        self.prometheus_exporter = prometheus_exporter
        self.window_sec = window_sec
        self.clock = clock or time.time

    def fetch(self, technology: str) -> List[QuestionRecord]:
        """
        Fetch questions tagged ``technology`` that were active in the last window.

        Exactly one request is made; results are not paginated.

        Raises:
            IngestError: Any request, decoding or required-field failure
        """
        from_date = int(self.clock()) - self.window_sec

        timer = self.prometheus_exporter.time_request("stackexchange") if self.prometheus_exporter else nullcontext()
        with timer:
            items = self.client.search_questions(technology, from_date)

        records = questions_to_records(items, technology)
        logger.info(f"Fetched {len(records)} questions tagged {technology}")

        if self.prometheus_exporter:
            self.prometheus_exporter.record_stackoverflow_call()
        return records
