"""Unit tests for :mod:`mailbatch._wiring` helpers."""

from __future__ import annotations

import asyncio
import io
from datetime import datetime, timezone

import pytest

from fakes import read_events
from mailbatch._wiring import build_retrieval, parse_as_of, result_payload
from mailbatch.config.loader import get_runtime_config
from mailbatch.gmail.types import FetchResult, ParsedMessage


def test_build_retrieval_shares_transport_and_settings(transport):
    stream = io.StringIO()
    runtime = get_runtime_config()
    transport.add_messages(["a"])
    transport.fail("a", times=1)

    retrieval = build_retrieval(runtime, transport, stream=stream)
    result = asyncio.run(retrieval.fetcher.fetch_batch(["a"]))

    assert retrieval.transport is transport
    assert retrieval.query.page_size_limit == 20
    assert retrieval.history.public_domains == runtime.history.public_domains
    assert [message.id for message in result.messages] == ["a"]
    components = {event["component"] for event in read_events(stream)}
    assert components == {"mailbatch-test.batch"}


@pytest.mark.parametrize(
    "value,expected",
    [
        ("1704067200", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ("2024-01-01T00:00:00", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ("2024-01-01T02:00:00+02:00", datetime(2024, 1, 1, tzinfo=timezone.utc)),
    ],
)
def test_parse_as_of(value, expected):
    assert parse_as_of(value) == expected


def test_parse_as_of_defaults_to_now():
    before = datetime.now(timezone.utc)

    assert parse_as_of(None) >= before


def test_parse_as_of_rejects_garbage():
    with pytest.raises(ValueError):
        parse_as_of("yesterday")


def test_result_payload_renders_dataclasses():
    result = FetchResult(messages=[ParsedMessage(id="a")], abandoned=["b"])

    payload = result_payload(result)

    assert payload["messages"][0]["id"] == "a"
    assert payload["abandoned"] == ["b"]
    assert payload["complete"] is False


def test_run_id_attached_to_every_event(transport):
    stream = io.StringIO()
    transport.add_messages(["a"])
    transport.fail("a", times=1)
    retrieval = build_retrieval(get_runtime_config(), transport, stream=stream, run_id="run-1")

    asyncio.run(retrieval.fetcher.fetch_batch(["a"]))
    asyncio.run(retrieval.query.query_pages("none", max_results=5))

    events = read_events(stream)
    assert {event["msg"] for event in events} >= {"batch_item_failed", "query_completed"}
    assert all(event["run_id"] == "run-1" for event in events)
