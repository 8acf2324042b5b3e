"""Unit tests for :mod:`mailbatch.gmail.history`."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from mailbatch.config.schema import HistorySettings
from mailbatch.errors import TransportError
from mailbatch.gmail.history import SenderHistoryResolver, extract_domain
from mailbatch.utils.logging import JsonLogger

AS_OF = datetime(2024, 1, 1, tzinfo=timezone.utc)
EPOCH = int(AS_OF.timestamp())


@pytest.fixture
def resolver(transport, log_stream) -> SenderHistoryResolver:
    return SenderHistoryResolver(transport, logger=JsonLogger(stream=log_stream))


def _queries(transport):
    return sorted(call["query"] for call in transport.list_calls)


def test_public_domain_searches_full_address(transport, resolver):
    asyncio.run(resolver.has_prior_communication("a@gmail.com", AS_OF, "cur"))

    assert _queries(transport) == [
        f"from:a@gmail.com before:{EPOCH}",
        f"to:a@gmail.com before:{EPOCH}",
    ]


def test_company_domain_searches_bare_domain(transport, resolver):
    asyncio.run(resolver.has_prior_communication("a@acme.com", AS_OF, "cur"))

    assert _queries(transport) == [
        f"from:acme.com before:{EPOCH}",
        f"to:acme.com before:{EPOCH}",
    ]


def test_search_limits_are_two_incoming_and_one_outgoing(transport, resolver):
    asyncio.run(resolver.has_prior_communication("a@acme.com", AS_OF, "cur"))

    limits = {call["query"].split(":", 1)[0]: call["max_results"] for call in transport.list_calls}
    assert limits == {"from": 2, "to": 1}


def test_only_current_message_means_no_prior_contact(transport, resolver):
    transport.add_search(f"from:a@gmail.com before:{EPOCH}", [["cur"]])

    assert asyncio.run(resolver.has_prior_communication("a@gmail.com", AS_OF, "cur")) is False


def test_other_incoming_message_counts(transport, resolver):
    transport.add_search(f"from:acme.com before:{EPOCH}", [["cur", "older"]])

    assert asyncio.run(resolver.has_prior_communication("bob@acme.com", AS_OF, "cur")) is True


def test_outgoing_message_counts(transport, resolver):
    transport.add_search(f"to:a@gmail.com before:{EPOCH}", [["sent-1"]])

    assert asyncio.run(resolver.has_prior_communication("a@gmail.com", AS_OF, "cur")) is True


def test_no_results_means_no_prior_contact(transport, resolver):
    assert asyncio.run(resolver.has_prior_communication("a@acme.com", AS_OF, None)) is False


def test_searches_run_concurrently(transport, resolver):
    asyncio.run(resolver.has_prior_communication("a@acme.com", AS_OF, "cur"))

    assert transport.max_in_flight == 2


def test_failed_search_cancels_sibling(transport, resolver, monkeypatch):
    sibling_cancelled = []

    async def list_messages(query=None, **kwargs):
        if query.startswith("from:"):
            await asyncio.sleep(0)
            raise TransportError("quota exceeded", status=429)
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            sibling_cancelled.append(query)
            raise

    monkeypatch.setattr(transport, "list", list_messages)

    with pytest.raises(TransportError):
        asyncio.run(resolver.has_prior_communication("a@acme.com", AS_OF))

    assert sibling_cancelled == [f"to:acme.com before:{EPOCH}"]


def test_display_name_and_case_are_normalised(transport, resolver):
    assert resolver.search_term_for("Alice <alice@GMAIL.com>") == "alice@GMAIL.com"
    assert resolver.search_term_for("Bob <bob@Acme.COM>") == "acme.com"


def test_sender_without_domain_uses_full_value(transport, resolver):
    assert resolver.search_term_for("postmaster") == "postmaster"


def test_epoch_seconds_and_naive_datetimes_accepted(transport, resolver):
    asyncio.run(resolver.has_prior_communication("a@acme.com", EPOCH, None))
    asyncio.run(resolver.has_prior_communication("a@acme.com", datetime(2024, 1, 1), None))

    assert {call["query"] for call in transport.list_calls} == {
        f"from:acme.com before:{EPOCH}",
        f"to:acme.com before:{EPOCH}",
    }


def test_public_domain_set_can_be_injected(transport):
    resolver = SenderHistoryResolver(transport, public_domains={"acme.com"})

    assert resolver.search_term_for("a@acme.com") == "a@acme.com"
    assert resolver.search_term_for("a@gmail.com") == "gmail.com"
    assert isinstance(resolver.public_domains, frozenset)


def test_settings_limits_applied(transport):
    settings = HistorySettings(incoming_limit=5, outgoing_limit=3)
    resolver = SenderHistoryResolver(transport, settings=settings)

    asyncio.run(resolver.has_prior_communication_with("x@y.org", EPOCH, None))

    limits = sorted(call["max_results"] for call in transport.list_calls)
    assert limits == [3, 5]


def test_exact_term_search_skips_domain_heuristic(transport, resolver):
    asyncio.run(resolver.has_prior_communication_with("a@acme.com", EPOCH, None))

    assert f"from:a@acme.com before:{EPOCH}" in _queries(transport)


@pytest.mark.parametrize(
    "address,expected",
    [
        ("a@acme.com", "acme.com"),
        ("Alice <a@Sub.Acme.com>", "sub.acme.com"),
        ("no-at-sign", None),
        ("", None),
        ("trailing@", None),
    ],
)
def test_extract_domain(address, expected):
    assert extract_domain(address) == expected
