"""Helper utilities that wire the CLI commands to the retrieval components.

What:
  Build the fetcher, paginated query, and sender-history resolver around one
  transport from a :class:`RuntimeConfig`, resolve timestamps given on the
  command line, and shape results for JSON output.

Why:
  Keeping construction and formatting apart from the Typer commands lets the
  wiring tests exercise them without a terminal, and keeps each command body
  down to "build, await, print".

How:
  Pure functions returning plain objects; structured loggers are derived from
  the configured component name and written to ``stderr`` so command output on
  ``stdout`` stays machine-readable.

Interfaces:
  :class:`Retrieval`, :func:`build_retrieval`, :func:`parse_as_of`,
  :func:`result_payload`.
"""
from __future__ import annotations

import dataclasses
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .config.schema import RuntimeConfig
from .gmail.batch import BatchFetcher
from .gmail.history import SenderHistoryResolver
from .gmail.query import PaginatedQuery
from .gmail.types import FetchResult, MailTransport
from .utils.logging import get_logger


@dataclass
class Retrieval:
    """The three retrieval components sharing one transport."""

    transport: MailTransport
    fetcher: BatchFetcher
    query: PaginatedQuery
    history: SenderHistoryResolver


def build_retrieval(
    runtime: RuntimeConfig,
    transport: MailTransport,
    *,
    stream: Any = None,
    run_id: Optional[str] = None,
) -> Retrieval:
    """Assemble the retrieval components from ``runtime`` settings.

    Args:
      runtime: Validated runtime configuration.
      transport: Provider of the remote primitives.
      stream: Log destination; defaults to ``stderr``.
      run_id: Identifier added to every structured event when given.

    Returns:
      A :class:`Retrieval` bundle.
    """

    stream = stream if stream is not None else sys.stderr
    component = runtime.logging.component
    context = {"run_id": run_id} if run_id else None
    fetcher = BatchFetcher(
        transport,
        settings=runtime.retrieval,
        logger=get_logger(f"{component}.batch", stream=stream, context=context),
    )
    query = PaginatedQuery(
        transport,
        fetcher,
        settings=runtime.retrieval,
        logger=get_logger(f"{component}.query", stream=stream, context=context),
    )
    history = SenderHistoryResolver(
        transport,
        settings=runtime.history,
        logger=get_logger(f"{component}.history", stream=stream, context=context),
    )
    return Retrieval(transport=transport, fetcher=fetcher, query=query, history=history)


def parse_as_of(value: Optional[str]) -> datetime:
    """Parse an ISO8601 string or epoch seconds; ``None`` means now (UTC).

    Raises:
      ValueError: If ``value`` is neither form.
    """

    if value is None:
        return datetime.now(timezone.utc)
    text = value.strip()
    if text.isdigit():
        return datetime.fromtimestamp(int(text), tz=timezone.utc)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _message_payload(message: Any) -> Any:
    if dataclasses.is_dataclass(message) and not isinstance(message, type):
        return dataclasses.asdict(message)
    return message


def result_payload(result: FetchResult[Any]) -> Dict[str, Any]:
    """Render a :class:`FetchResult` as a JSON-ready mapping."""

    return {
        "messages": [_message_payload(message) for message in result.messages],
        "abandoned": list(result.abandoned),
        "complete": result.complete,
    }
