"""Unit tests for the structured JSON logger."""

from __future__ import annotations

import io
from datetime import datetime, timezone

from fakes import read_events
from mailbatch.utils.logging import REDACTED, JsonLogger, get_logger


def test_payload_schema_and_level_normalisation():
    stream = io.StringIO()
    logger = JsonLogger(stream=stream, component="mailbatch.batch")

    logger.log("info", "batch_missing_messages", extra={"message_ids": ["a"], "attempt": 1})

    (event,) = read_events(stream)
    assert event["lvl"] == "INFO"
    assert event["msg"] == "batch_missing_messages"
    assert event["component"] == "mailbatch.batch"
    assert event["message_ids"] == ["a"]
    assert "ts" in event


def test_sensitive_fields_redacted_at_any_depth():
    stream = io.StringIO()
    logger = JsonLogger(stream=stream)

    logger.error(
        "parse_failed",
        snippet="secret",
        message={"subject": "private", "id": "m1"},
        parts=[{"body": "hidden", "mimeType": "text/plain"}],
    )

    (event,) = read_events(stream)
    assert event["snippet"] == REDACTED
    assert event["message"] == {"subject": REDACTED, "id": "m1"}
    assert event["parts"] == [{"body": REDACTED, "mimeType": "text/plain"}]


def test_non_json_values_rendered_as_strings():
    stream = io.StringIO()
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)

    JsonLogger(stream=stream).warning("retry", at=moment)

    (event,) = read_events(stream)
    assert event["lvl"] == "WARN"
    assert event["at"] == str(moment)


def test_child_and_get_logger_share_stream():
    stream = io.StringIO()
    parent = get_logger("mailbatch", stream=stream)

    parent.child("mailbatch.query").debug("page")

    (event,) = read_events(stream)
    assert event["component"] == "mailbatch.query"
    assert event["lvl"] == "DEBUG"


def test_context_fields_on_every_entry_and_inherited_by_children():
    stream = io.StringIO()
    logger = get_logger("mailbatch", stream=stream, context={"run_id": "r1"})

    logger.info("first")
    logger.child("mailbatch.batch").info("second", run_id="override")

    first, second = read_events(stream)
    assert first["run_id"] == "r1"
    assert second["run_id"] == "override"
    assert second["component"] == "mailbatch.batch"
