"""Normalized record shapes produced by the fetchers and consumed by the sink."""

from datetime import datetime
from typing import List, Optional, TypedDict


class IssueRecord(TypedDict):
    """
    One GitHub issue as stored in ``github_issues``.

    ``closed_at`` is None for issues that have not been closed.
    """
    title: str
    number: int
    created_at: Optional[datetime]
    closed_at: Optional[datetime]
    repo: str  # Repository name, e.g. "go"


class AnswerRecord(TypedDict):
    """One answer attached to a question."""
    body: str


class QuestionRecord(TypedDict):
    """
    One Stack Overflow question as stored in ``so_posts``.

    ``answers``, ``question_id`` and ``link`` are carried for logging and
    callers but are not persisted.
    """
    title: str
    body: str
    technology: str  # Tag used in the query, e.g. "Go"
    created_at: Optional[datetime]
    closed_at: Optional[datetime]
    answers: List[AnswerRecord]
    question_id: Optional[int]
    link: Optional[str]
