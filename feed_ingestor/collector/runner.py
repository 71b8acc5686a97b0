"""Ingestion run: reset tables, then fetch and store every configured target."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from feed_ingestor.collector.fetchers import IssueFetcher, QuestionFetcher
from feed_ingestor.config import RepositoryTarget
from feed_ingestor.storage.postgres_sink import PostgresSink

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Rows stored during one run, keyed by ``owner/name`` and by tag."""

    issues_per_repo: Dict[str, int] = field(default_factory=dict)
    questions_per_tag: Dict[str, int] = field(default_factory=dict)

    @property
    def total_issues(self) -> int:
        return sum(self.issues_per_repo.values())

    @property
    def total_questions(self) -> int:
        return sum(self.questions_per_tag.values())


class IngestionRunner:
    """
    Runs one full ingestion cycle.

    Tables are dropped and recreated first, so after a successful run they
    hold exactly the records retrieved by that run. Each repository and tag is
    fetched and stored to completion before the next one starts. Any error
    propagates and leaves the tables partially filled.
    """

    def __init__(
        self,
        issue_fetcher: IssueFetcher,
        question_fetcher: QuestionFetcher,
        sink: PostgresSink,
        repositories: List[RepositoryTarget],
        technologies: List[str],
    ):
        self.issue_fetcher = issue_fetcher
        self.question_fetcher = question_fetcher
        self.sink = sink
        self.repositories = repositories
        self.technologies = technologies

    def reset_tables(self) -> None:
        """Drop and recreate both destination tables."""
        self.sink.reset_issue_table()
        self.sink.reset_question_table()

    def ingest_issues(self, summary: RunSummary) -> None:
        for target in self.repositories:
            issues = self.issue_fetcher.fetch(target.owner, target.name)
            for issue in issues:
                self.sink.store_issue(issue)
            summary.issues_per_repo[f"{target.owner}/{target.name}"] = len(issues)
            logger.info(f"Stored {len(issues)} issues for {target.owner}/{target.name}")

    def ingest_questions(self, summary: RunSummary) -> None:
        for index, technology in enumerate(self.technologies):
            logger.info(f"Index: {index}, Technology: {technology}")
            questions = self.question_fetcher.fetch(technology)
            for question in questions:
                self.sink.store_question(question)
            summary.questions_per_tag[technology] = len(questions)

    def run(self) -> RunSummary:
        """
        Execute the run.

        Returns:
            RunSummary with per-target row counts
        """
        summary = RunSummary()
        self.reset_tables()
        self.ingest_issues(summary)
        self.ingest_questions(summary)
        logger.info(
            f"Run complete: {summary.total_issues} issues from {len(summary.issues_per_repo)} repositories, "
            f"{summary.total_questions} questions from {len(summary.questions_per_tag)} tags"
        )
        return summary
