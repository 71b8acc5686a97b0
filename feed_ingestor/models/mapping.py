"""Field extraction and mapping of raw API documents to normalized records.

Upstream responses are decoded into plain ``dict``/``list`` structures whose
shape is only loosely guaranteed. Every field read goes through
:func:`extract_field` with a :class:`FieldPolicy` that states whether the
field is required, what type it must have and which sentinel replaces it
when it is absent or null.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, NamedTuple, Optional, Tuple

from feed_ingestor.errors import FieldTypeError, MissingFieldError
from feed_ingestor.models.records import AnswerRecord, IssueRecord, QuestionRecord

logger = logging.getLogger(__name__)

NO_BODY = "No Body"
NO_ANSWER_BODY = "No answers yet"


@dataclass(frozen=True)
class FieldPolicy:
    """How a single field is read from a raw document."""

    types: Tuple[type, ...]
    required: bool = False
    default: Any = None
    default_factory: Optional[Callable[[], Any]] = None

    def make_default(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        return self.default


class ExtractedField(NamedTuple):
    """Result of a field read; ``defaulted`` is True when the sentinel was used."""

    value: Any
    defaulted: bool


QUESTION_TITLE = FieldPolicy(types=(str,), required=True)
QUESTION_BODY = FieldPolicy(types=(str,), default=NO_BODY)
QUESTION_ID = FieldPolicy(types=(int,))
QUESTION_LINK = FieldPolicy(types=(str,))
EPOCH_SECONDS = FieldPolicy(types=(int, float))
ANSWER_LIST = FieldPolicy(types=(list,), default_factory=list)
ANSWER_BODY = FieldPolicy(types=(str,), default=NO_ANSWER_BODY)

ISSUE_TITLE = FieldPolicy(types=(str,), default="")
ISSUE_NUMBER = FieldPolicy(types=(int,), default=0)
ISO_TIMESTAMP = FieldPolicy(types=(str,))


def extract_field(container: Any, name: str, policy: FieldPolicy) -> ExtractedField:
    """
    Read ``name`` from ``container`` according to ``policy``.

    Args:
        container: Raw decoded JSON object
        name: Key to read
        policy: Type and default rules for the key

    Returns:
        ExtractedField with the value (or the policy default) and a flag
        telling whether the default was substituted

    Raises:
        MissingFieldError: If the field is required and absent or null
        FieldTypeError: If the container is not an object or the value has the wrong type
    """
    if not isinstance(container, Mapping):
        raise FieldTypeError(name, f"expected an object holding the field, got {type(container).__name__}")

    raw = container.get(name)
    if raw is None:
        if policy.required:
            raise MissingFieldError(name)
        return ExtractedField(policy.make_default(), True)

    # bool is an int subclass; JSON true/false never stands in for a number
    if isinstance(raw, bool) and bool not in policy.types:
        raise FieldTypeError(name, "expected a number, got a boolean")
    if not isinstance(raw, policy.types):
        expected = " or ".join(t.__name__ for t in policy.types)
        raise FieldTypeError(name, f"expected {expected}, got {type(raw).__name__}")

    return ExtractedField(raw, False)


def epoch_to_datetime(seconds: float) -> datetime:
    """Convert seconds since the Unix epoch to an aware UTC datetime."""
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc)


def parse_iso_timestamp(name: str, value: str) -> datetime:
    """Parse a GitHub ISO-8601 timestamp such as ``2023-01-01T12:00:00Z``."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise FieldTypeError(name, f"invalid timestamp {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_epoch(item: Mapping[str, Any], name: str) -> Optional[datetime]:
    seconds = extract_field(item, name, EPOCH_SECONDS).value
    return epoch_to_datetime(seconds) if seconds is not None else None


def _optional_iso(raw: Mapping[str, Any], name: str) -> Optional[datetime]:
    value = extract_field(raw, name, ISO_TIMESTAMP).value
    return parse_iso_timestamp(name, value) if value is not None else None


def answer_to_record(answer: Any) -> AnswerRecord:
    """
    Convert one raw answer object to an AnswerRecord.

    A missing body becomes the ``NO_ANSWER_BODY`` sentinel; it is never fatal.
    """
    body = extract_field(answer, "body", ANSWER_BODY)
    if body.defaulted:
        logger.debug("Answer has no body, using sentinel")
    return {"body": body.value}


def question_item_to_record(item: Any, technology: str) -> QuestionRecord:
    """
    Convert one raw Stack Exchange question item to a QuestionRecord.

    Args:
        item: One element of the response ``items`` list
        technology: Tag the query was made for

    Returns:
        A QuestionRecord TypedDict

    Raises:
        MissingFieldError: If ``title`` is absent or null
        FieldTypeError: If any field has an unexpected type
    """
    title = extract_field(item, "title", QUESTION_TITLE).value
    body = extract_field(item, "body", QUESTION_BODY).value
    raw_answers = extract_field(item, "answers", ANSWER_LIST).value

    record: QuestionRecord = {
        "title": title,
        "body": body,
        "technology": technology,
        "created_at": _optional_epoch(item, "creation_date"),
        "closed_at": _optional_epoch(item, "closed_date"),
        "answers": [answer_to_record(answer) for answer in raw_answers],
        "question_id": extract_field(item, "question_id", QUESTION_ID).value,
        "link": extract_field(item, "link", QUESTION_LINK).value,
    }
    return record


def questions_to_records(items: List[Any], technology: str) -> List[QuestionRecord]:
    """
    Convert a list of raw question items to QuestionRecords.

    A single bad item fails the whole batch; the error propagates to the caller.
    """
    return [question_item_to_record(item, technology) for item in items]


def issue_to_record(raw: Any, repo: str) -> IssueRecord:
    """
    Convert one raw GitHub issue object to an IssueRecord.

    Missing fields read as their zero values: empty title, number 0 and no
    timestamps.

    Args:
        raw: One element of an issue-list page
        repo: Repository name the issue was listed from

    Returns:
        An IssueRecord TypedDict
    """
    record: IssueRecord = {
        "title": extract_field(raw, "title", ISSUE_TITLE).value,
        "number": extract_field(raw, "number", ISSUE_NUMBER).value,
        "created_at": _optional_iso(raw, "created_at"),
        "closed_at": _optional_iso(raw, "closed_at"),
        "repo": repo,
    }
    return record


def issues_to_records(raw_issues: List[Any], repo: str) -> List[IssueRecord]:
    """Convert a list of raw GitHub issues to IssueRecords, preserving order."""
    return [issue_to_record(raw, repo) for raw in raw_issues]
