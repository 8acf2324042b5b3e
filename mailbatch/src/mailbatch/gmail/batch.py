"""Batched fetch-by-id with partial-failure retry.

What:
  Resolve up to one batch worth of message ids through a single ``batch_get``
  call, parse every successful item, and retry only the ids that failed,
  sleeping a little longer before each retry.

Why:
  The Gmail batch endpoint answers each sub-request independently: a batch
  may come back with a handful of 429/500 items among hundreds of successes.
  Re-requesting only the failed subset keeps quota usage proportional to the
  failures, while a bounded attempt budget keeps latency bounded.

How:
  An iterative loop carries the attempt counter, the delivered messages, and
  the shrinking list of ids still missing. The backoff before attempt ``n`` is
  ``n × backoff_unit_s`` and is awaited cooperatively, racing an optional
  cancellation event. Ids still missing when the budget runs out (or when the
  caller cancels) are reported in :attr:`FetchResult.abandoned`.

Interfaces:
  :class:`BatchFetcher`, :func:`linear_backoff`.

Invariants & Safety:
  - A request never carries more than ``batch_limit`` (100) ids; larger
    inputs raise :class:`~mailbatch.errors.ValidationError` before any call.
  - At most ``max_retries + 1`` requests are made per call.
  - Messages delivered on an earlier attempt are never lost by a later one.
  - A failed ``batch_get`` call counts every pending id as missing; it is
    retried like per-item failures and never escapes :meth:`BatchFetcher.fetch_batch`.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from ..config.schema import RetrievalSettings
from ..errors import TransportError, ValidationError
from ..utils.logging import JsonLogger, get_logger
from .parser import parse_message
from .types import (
    BatchItemError,
    FetchResult,
    MailTransport,
    MessageId,
    Parser,
    as_batch_error,
    is_batch_error,
)


SleepFn = Callable[[float], Awaitable[Any]]


def linear_backoff(attempt: int, unit: float = 1.0) -> float:
    """Return the delay in seconds to wait before retry ``attempt``.

    Attempt numbering starts at ``1`` for the first retry, so the default
    unit yields 1 s, 2 s, 3 s.
    """

    return max(attempt, 0) * unit


class BatchFetcher:
    """Fetch messages by id with per-item retry.

    What:
      Wraps the transport's ``batch_get`` primitive with size validation,
      per-item failure detection, bounded retries, and parsing.

    Why:
      Callers want "the messages for these ids" and should not have to know
      that the remote end fails individual sub-requests under load.

    How:
      Holds only configuration (transport, parser, limits, logger, sleep
      function). Each :meth:`fetch_batch` call is self-contained.
    """

    def __init__(
        self,
        transport: MailTransport,
        *,
        parser: Parser = parse_message,
        settings: Optional[RetrievalSettings] = None,
        logger: Optional[JsonLogger] = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._parser = parser
        self._settings = settings or RetrievalSettings()
        self._logger = logger or get_logger("mailbatch.gmail.batch")
        self._sleep = sleep

    @property
    def batch_limit(self) -> int:
        return self._settings.batch_limit

    async def fetch_batch(
        self,
        ids: Sequence[MessageId],
        *,
        attempt: int = 0,
        cancel: Optional[asyncio.Event] = None,
    ) -> FetchResult[Any]:
        """Fetch and parse ``ids``, retrying failed items.

        What:
          Issues one ``batch_get`` per attempt and collects parsed messages in
          retrieval order (not necessarily the order of ``ids``).

        Why:
          ``attempt`` lets a caller resume a partially spent budget; starting
          beyond ``max_retries`` abandons everything without a request.

        How:
          Validate the size, then loop: request the pending ids, split the
          positional results into delivered and missing, and either stop,
          abandon, or sleep ``attempt × backoff_unit_s`` before the next round.

        Args:
          ids: Message ids to resolve; at most ``batch_limit``.
          attempt: Attempt number of the first request (``0`` for a fresh call).
          cancel: Optional event; once set, no further request is made and the
            remaining ids are abandoned.

        Returns:
          A :class:`FetchResult` with delivered messages and abandoned ids.

        Raises:
          ValidationError: If ``ids`` exceeds the batch cap.
        """

        pending: List[MessageId] = list(ids)
        limit = self._settings.batch_limit
        if len(pending) > limit:
            self._logger.error("batch_too_large", count=len(pending), limit=limit)
            raise ValidationError("batch too large")

        max_retries = self._settings.max_retries
        messages: List[Any] = []
        while pending:
            if attempt > max_retries:
                self._logger.error(
                    "batch_retries_exhausted",
                    message_ids=pending,
                    attempt=attempt,
                    max_retries=max_retries,
                )
                return FetchResult(messages=messages, abandoned=pending)
            if cancel is not None and cancel.is_set():
                self._logger.warning("batch_cancelled", message_ids=pending, attempt=attempt)
                return FetchResult(messages=messages, abandoned=pending)

            try:
                delivered, missing = await self._request(pending)
            except TransportError as exc:
                self._logger.error(
                    "batch_request_failed",
                    message_ids=pending,
                    attempt=attempt,
                    status=exc.status,
                    error=str(exc),
                )
                delivered, missing = [], list(pending)
            messages.extend(delivered)
            if not missing:
                break

            self._logger.info("batch_missing_messages", message_ids=missing, attempt=attempt)
            attempt += 1
            pending = missing
            if attempt <= max_retries:
                await self._pause(linear_backoff(attempt, self._settings.backoff_unit_s), cancel)

        return FetchResult(messages=messages, abandoned=[])

    async def fetch_messages(self, ids: Sequence[MessageId], **kwargs: Any) -> List[Any]:
        """Return only the delivered messages of :meth:`fetch_batch`."""

        result = await self.fetch_batch(ids, **kwargs)
        return result.messages

    async def _request(self, ids: List[MessageId]) -> Tuple[List[Any], List[MessageId]]:
        results = await self._transport.batch_get(ids)
        delivered: List[Any] = []
        missing: List[MessageId] = []
        for index, message_id in enumerate(ids):
            if index < len(results):
                item = results[index]
            else:
                item = BatchItemError(code=0, message="no result returned for id")
            if is_batch_error(item):
                error = as_batch_error(item)
                self._logger.error(
                    "batch_item_failed",
                    message_id=message_id,
                    code=error.code,
                    error=error.message,
                )
                missing.append(message_id)
                continue
            delivered.append(self._parser(item))
        return delivered, missing

    async def _pause(self, delay: float, cancel: Optional[asyncio.Event]) -> None:
        if cancel is None:
            await self._sleep(delay)
            return
        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
