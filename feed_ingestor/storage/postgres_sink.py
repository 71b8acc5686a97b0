"""
SQLAlchemy-based PostgreSQL sink for issue and question records.

Every store call is one parameterized INSERT in its own transaction; there is
no batching, no upsert and no retry.
"""

import logging
from typing import Optional, Type

from sqlalchemy import func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from feed_ingestor.errors import StorageError
from feed_ingestor.models.records import IssueRecord, QuestionRecord
from feed_ingestor.models.tables import Base, GithubIssueORM, SOPostORM
from feed_ingestor.monitoring.metrics import PrometheusExporter

logger = logging.getLogger(__name__)


class PostgresSink:
    """Sink writing issues and questions to their tables, one row per call."""

    def __init__(
        self,
        issues_engine: Engine,
        questions_engine: Optional[Engine] = None,
        prometheus_exporter: Optional[PrometheusExporter] = None,
    ):
        """
        Initialize the sink.

        Args:
            issues_engine: Engine for the database holding ``github_issues``
            questions_engine: Engine for ``so_posts`` (defaults to ``issues_engine``)
            prometheus_exporter: Optional exporter counting stored rows
        """
        self.issues_engine = issues_engine
        self.questions_engine = questions_engine or issues_engine
        self.prometheus_exporter = prometheus_exporter

    def _reset(self, engine: Engine, orm: Type[Base]) -> None:
        table = orm.__table__
        try:
            Base.metadata.drop_all(engine, tables=[table])
            Base.metadata.create_all(engine, tables=[table])
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to reset table {table.name}: {e}") from e
        logger.info(f"Created table {table.name}")

    def reset_issue_table(self) -> None:
        """Drop and recreate ``github_issues``."""
        self._reset(self.issues_engine, GithubIssueORM)

    def reset_question_table(self) -> None:
        """Drop and recreate ``so_posts``."""
        self._reset(self.questions_engine, SOPostORM)

    def _insert(self, engine: Engine, orm: Type[Base], values: dict) -> None:
        table_name = orm.__tablename__
        try:
            with engine.begin() as conn:
                conn.execute(insert(orm).values(**values))
        except SQLAlchemyError as e:
            raise StorageError(f"Insert into {table_name} failed: {e}") from e

        if self.prometheus_exporter:
            self.prometheus_exporter.record_row_stored(table_name)

    def store_issue(self, issue: IssueRecord) -> None:
        """
        Insert one issue into ``github_issues``.

        Raises:
            StorageError: If the insert fails
        """
        self._insert(self.issues_engine, GithubIssueORM, {
            "title": issue["title"],
            "issue_number": issue["number"],
            "created_at": issue["created_at"],
            "closed_at": issue["closed_at"],
            "repo": issue["repo"],
        })

    def store_question(self, question: QuestionRecord) -> None:
        """
        Insert one question into ``so_posts``.

        Answers are not persisted.

        Raises:
            StorageError: If the insert fails
        """
        logger.debug(f"Inserting {question['technology']} question: {question['title']}")
        self._insert(self.questions_engine, SOPostORM, {
            "title": question["title"],
            "body": question["body"],
            "created_at": question["created_at"],
            "closed_at": question["closed_at"],
            "technology": question["technology"],
        })

    def count_rows(self, orm: Type[Base]) -> int:
        """Number of rows currently in the table mapped by ``orm``."""
        engine = self.issues_engine if orm is GithubIssueORM else self.questions_engine
        try:
            with engine.connect() as conn:
                return conn.execute(select(func.count()).select_from(orm.__table__)).scalar_one()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to count rows in {orm.__tablename__}: {e}") from e
