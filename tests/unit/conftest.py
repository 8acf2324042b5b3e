"""Pytest fixtures for unit tests driving the retrieval components.

What:
  Make ``tests/unit`` importable and expose a fake transport, a captured log
  stream, and a recording sleep function.

Why:
  Retry tests assert on the exact backoff delays and log events. Recording
  sleeps instead of waiting keeps the suite fast while still checking the
  schedule.

Interfaces:
  ``transport``, ``log_stream``, ``delays``, ``sleep``, ``fetcher``
  (pytest fixtures).
"""

import io
import sys
from pathlib import Path

import pytest

from mailbatch.gmail.batch import BatchFetcher
from mailbatch.utils.logging import JsonLogger

UNIT_DIR = Path(__file__).resolve().parent
if str(UNIT_DIR) not in sys.path:
    sys.path.insert(0, str(UNIT_DIR))

from fakes import FakeGmailTransport


@pytest.fixture
def transport() -> FakeGmailTransport:
    return FakeGmailTransport()


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def delays() -> list:
    return []


@pytest.fixture
def sleep(delays):
    """Async sleep replacement that records the requested delay."""

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    return _sleep


@pytest.fixture
def fetcher(transport, log_stream, sleep) -> BatchFetcher:
    """Batch fetcher with default limits, recorded sleeps, and captured logs."""

    logger = JsonLogger(stream=log_stream, component="test.batch")
    return BatchFetcher(transport, logger=logger, sleep=sleep)
