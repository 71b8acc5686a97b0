"""Tests for the field extractor and record mapping."""

from datetime import datetime, timezone

import pytest

from feed_ingestor.errors import FieldTypeError, MissingFieldError
from feed_ingestor.models.mapping import (
    ANSWER_LIST,
    NO_ANSWER_BODY,
    NO_BODY,
    QUESTION_BODY,
    QUESTION_TITLE,
    EPOCH_SECONDS,
    extract_field,
    issue_to_record,
    issues_to_records,
    question_item_to_record,
    questions_to_records,
)


class TestExtractField:
    """Unit tests for extract_field policies."""

    def test_present_value_is_returned(self):
        result = extract_field({"title": "foo"}, "title", QUESTION_TITLE)
        assert result.value == "foo"
        assert result.defaulted is False

    @pytest.mark.parametrize("item", [{}, {"title": None}])
    def test_required_field_missing_or_null_raises(self, item):
        with pytest.raises(MissingFieldError) as exc_info:
            extract_field(item, "title", QUESTION_TITLE)
        assert exc_info.value.field_name == "title"

    @pytest.mark.parametrize("item", [{}, {"body": None}])
    def test_optional_field_uses_sentinel(self, item):
        result = extract_field(item, "body", QUESTION_BODY)
        assert result.value == NO_BODY
        assert result.defaulted is True

    def test_default_factory_returns_fresh_list(self):
        first = extract_field({}, "answers", ANSWER_LIST).value
        first.append("x")
        assert extract_field({}, "answers", ANSWER_LIST).value == []

    def test_wrong_type_raises(self):
        with pytest.raises(FieldTypeError):
            extract_field({"title": 42}, "title", QUESTION_TITLE)

    def test_boolean_is_not_a_number(self):
        with pytest.raises(FieldTypeError):
            extract_field({"closed_date": True}, "closed_date", EPOCH_SECONDS)

    def test_container_must_be_an_object(self):
        with pytest.raises(FieldTypeError):
            extract_field(["title"], "title", QUESTION_TITLE)


class TestQuestionMapping:
    """Tests for mapping Stack Exchange question items."""

    def test_full_item(self):
        item = {
            "question_id": 77001,
            "title": "How do I scrape metrics?",
            "body": "<p>Details</p>",
            "link": "https://stackoverflow.com/q/77001",
            "creation_date": 1700000000,
            "closed_date": 1700003600,
            "answers": [{"body": "Use a ServiceMonitor"}, {"body": "Or static config"}],
        }

        record = question_item_to_record(item, "Prometheus")

        assert record["title"] == "How do I scrape metrics?"
        assert record["body"] == "<p>Details</p>"
        assert record["technology"] == "Prometheus"
        assert record["created_at"] == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert record["closed_at"] == datetime(2023, 11, 14, 23, 13, 20, tzinfo=timezone.utc)
        assert record["answers"] == [{"body": "Use a ServiceMonitor"}, {"body": "Or static config"}]
        assert record["question_id"] == 77001
        assert record["link"] == "https://stackoverflow.com/q/77001"

    def test_missing_title_is_fatal(self):
        with pytest.raises(MissingFieldError):
            question_item_to_record({"body": "text"}, "Go")

    def test_null_title_is_fatal(self):
        with pytest.raises(MissingFieldError):
            question_item_to_record({"title": None, "body": "text"}, "Go")

    def test_missing_body_defaults(self):
        record = question_item_to_record({"title": "foo"}, "Go")
        assert record["body"] == "No Body"

    def test_open_question_has_no_closed_at(self):
        record = question_item_to_record({"title": "foo"}, "Go")
        assert record["closed_at"] is None
        assert record["created_at"] is None
        assert record["answers"] == []

    def test_float_closed_date(self):
        record = question_item_to_record({"title": "foo", "closed_date": 1700000000.0}, "Go")
        assert record["closed_at"] == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    def test_answer_without_body_uses_sentinel(self):
        record = question_item_to_record({"title": "foo", "answers": [{}, {"body": None}]}, "Go")
        assert record["answers"] == [{"body": NO_ANSWER_BODY}, {"body": NO_ANSWER_BODY}]

    def test_answer_that_is_not_an_object_raises(self):
        with pytest.raises(FieldTypeError):
            question_item_to_record({"title": "foo", "answers": ["bar"]}, "Go")

    def test_bad_item_fails_whole_batch(self):
        with pytest.raises(MissingFieldError):
            questions_to_records([{"title": "ok"}, {"body": "no title"}], "Go")


class TestIssueMapping:
    """Tests for mapping GitHub issue objects."""

    def test_issue_to_record(self):
        raw = {
            "number": 61234,
            "title": "cmd/go: build cache grows unbounded",
            "created_at": "2023-06-01T10:15:00Z",
            "closed_at": "2023-06-03T08:00:00Z",
            "state": "closed",
        }

        record = issue_to_record(raw, "go")

        assert record["title"] == "cmd/go: build cache grows unbounded"
        assert record["number"] == 61234
        assert record["created_at"] == datetime(2023, 6, 1, 10, 15, tzinfo=timezone.utc)
        assert record["closed_at"] == datetime(2023, 6, 3, 8, 0, tzinfo=timezone.utc)
        assert record["repo"] == "go"

    def test_open_issue_has_no_closed_at(self):
        record = issue_to_record({"number": 1, "title": "t", "created_at": "2023-06-01T10:15:00Z", "closed_at": None}, "go")
        assert record["closed_at"] is None

    def test_missing_fields_read_as_zero_values(self):
        record = issue_to_record({}, "go")
        assert record == {"title": "", "number": 0, "created_at": None, "closed_at": None, "repo": "go"}

    def test_invalid_timestamp_raises(self):
        with pytest.raises(FieldTypeError):
            issue_to_record({"created_at": "yesterday"}, "go")

    def test_issues_to_records_preserves_order(self):
        records = issues_to_records([{"number": 3}, {"number": 1}, {"number": 2}], "go")
        assert [r["number"] for r in records] == [3, 1, 2]
