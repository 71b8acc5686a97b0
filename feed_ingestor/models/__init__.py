"""Record types, ORM tables and raw-document mapping."""

from feed_ingestor.models.records import AnswerRecord, IssueRecord, QuestionRecord
from feed_ingestor.models.tables import Base, GithubIssueORM, SOPostORM

__all__ = [
    "AnswerRecord",
    "IssueRecord",
    "QuestionRecord",
    "Base",
    "GithubIssueORM",
    "SOPostORM",
]
