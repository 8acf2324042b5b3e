"""Unit tests for single-message lookups in :mod:`mailbatch.gmail.lookup`."""

from __future__ import annotations

import asyncio

from fakes import read_events
from mailbatch.gmail.lookup import get_message, get_message_by_rfc822_id
from mailbatch.utils.logging import JsonLogger


def test_get_message_parses_single_fetch(transport):
    transport.add_messages(["abc"])

    message = asyncio.run(get_message(transport, "abc"))

    assert message.id == "abc"
    assert transport.get_calls == ["abc"]


def test_rfc822_lookup_strips_brackets(transport):
    transport.add_search("rfc822msgid:1234@mail.example.com", [["gm-1"]])

    message = asyncio.run(get_message_by_rfc822_id(transport, "<1234@mail.example.com>"))

    assert message.id == "gm-1"
    assert transport.list_calls[0]["max_results"] == 1
    assert transport.get_calls == ["gm-1"]


def test_rfc822_lookup_miss_returns_none(transport, log_stream):
    logger = JsonLogger(stream=log_stream)

    message = asyncio.run(get_message_by_rfc822_id(transport, "<missing@x>", logger=logger))

    assert message is None
    assert transport.get_calls == []
    events = read_events(log_stream)
    assert events[0]["msg"] == "rfc822_message_not_found"
    assert events[0]["rfc822_message_id"] == "missing@x"


def test_custom_parser_applied(transport):
    transport.add_messages(["abc"])

    thread_id = asyncio.run(get_message(transport, "abc", parser=lambda raw: raw["threadId"]))

    assert thread_id == "t-abc"
