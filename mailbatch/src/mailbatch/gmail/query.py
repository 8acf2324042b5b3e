"""Paginated search accumulation on top of :class:`BatchFetcher`.

What:
  Run a search in the remote query grammar one bounded page at a time, turn
  each page of ids into parsed messages through the batch fetcher, and keep
  going until enough messages were gathered or the last page was reached.

Why:
  The Gmail ``list`` endpoint is cheap but the follow-up fetch is not; asking
  for more than 20 messages per page triggers 429 responses. Capping the page
  size independently of the caller's desired total keeps every round trip
  inside the quota.

How:
  :meth:`PaginatedQuery.query_page` validates the page size, lists one page,
  and forwards non-empty id lists to the fetcher. :meth:`query_pages` loops
  over page tokens, appending whole pages, and stops once the accumulated
  count reaches ``max_results`` or no token remains.

Interfaces:
  :class:`PaginatedQuery`, :class:`QueryPage`.

Invariants & Safety:
  - No ``list`` call ever requests more than ``page_size_limit`` (20) ids.
  - ``max_results`` is advisory: the final page is kept whole.
  - No retry logic lives here; per-item retries belong to the fetcher.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from ..config.schema import RetrievalSettings
from ..errors import ValidationError
from ..utils.logging import JsonLogger, get_logger
from .batch import BatchFetcher
from .types import FetchResult, ListPage, MailTransport, MessageId, PageToken


@dataclass(frozen=True)
class QueryPage:
    """Parsed messages for one search page plus its continuation token."""

    messages: List[Any] = field(default_factory=list)
    next_page_token: Optional[PageToken] = None
    abandoned: List[MessageId] = field(default_factory=list)


class PaginatedQuery:
    """Accumulate search results across pages.

    Args:
      transport: Provider of the ``list`` primitive.
      fetcher: Batch fetcher used to resolve each page's ids.
      settings: Page-size cap; defaults to the remote API's limit of 20.
      logger: Structured logger for rejected page sizes and page progress.
    """

    def __init__(
        self,
        transport: MailTransport,
        fetcher: BatchFetcher,
        *,
        settings: Optional[RetrievalSettings] = None,
        logger: Optional[JsonLogger] = None,
    ) -> None:
        self._transport = transport
        self._fetcher = fetcher
        self._settings = settings or RetrievalSettings()
        self._logger = logger or get_logger("mailbatch.gmail.query")

    @property
    def page_size_limit(self) -> int:
        return self._settings.page_size_limit

    def _check_page_size(self, page_size: int) -> None:
        limit = self._settings.page_size_limit
        if page_size > limit:
            self._logger.error("page_size_too_large", page_size=page_size, limit=limit)
            raise ValidationError("page size too large")
        if page_size < 1:
            raise ValidationError("page size must be positive")

    async def list_page(
        self,
        query: Optional[str] = None,
        *,
        page_token: Optional[PageToken] = None,
        label_ids: Optional[Sequence[str]] = None,
        page_size: Optional[int] = None,
    ) -> ListPage:
        """List one page of ids without fetching the messages."""

        size = self._settings.page_size_limit if page_size is None else page_size
        self._check_page_size(size)
        return await self._transport.list(
            query=query,
            page_token=page_token,
            label_ids=list(label_ids) if label_ids else None,
            max_results=size,
        )

    async def query_page(
        self,
        query: Optional[str] = None,
        *,
        page_token: Optional[PageToken] = None,
        label_ids: Optional[Sequence[str]] = None,
        page_size: Optional[int] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> QueryPage:
        """Fetch one page of parsed messages.

        What:
          Lists up to ``page_size`` ids and resolves them through the fetcher.

        Why:
          An empty listing has nothing to fetch and, per the remote API, no
          further pages; it short-circuits without a batch call.

        Args:
          query: Search string in the remote query grammar.
          page_token: Continuation token from the previous page.
          label_ids: Optional label filters.
          page_size: Ids per page; defaults to and may not exceed the cap.
          cancel: Forwarded to the fetcher to stop retries early.

        Returns:
          :class:`QueryPage` with parsed messages and the next token.

        Raises:
          ValidationError: If ``page_size`` exceeds the cap or is not positive.
        """

        listing = await self.list_page(
            query, page_token=page_token, label_ids=label_ids, page_size=page_size
        )
        if not listing.ids:
            return QueryPage()
        result = await self._fetcher.fetch_batch(listing.ids, cancel=cancel)
        return QueryPage(
            messages=list(result.messages),
            next_page_token=listing.next_page_token or None,
            abandoned=list(result.abandoned),
        )

    async def query_pages(
        self,
        query: Optional[str] = None,
        *,
        max_results: int,
        label_ids: Optional[Sequence[str]] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> FetchResult[Any]:
        """Accumulate pages until ``max_results`` is reached or pages run out.

        What:
          Requests at least one page, then keeps following ``next_page_token``
          while fewer than ``max_results`` messages were gathered.

        Why:
          Whole pages are kept because their ids were already fetched;
          discarding part of a page would waste quota, so the bound is
          advisory.

        Args:
          query: Search string in the remote query grammar.
          max_results: Desired number of messages (advisory).
          label_ids: Optional label filters applied to every page.
          cancel: Optional event; once set, pagination stops after the current
            page and the fetcher stops retrying.

        Returns:
          A :class:`FetchResult` with every delivered message and every id
          abandoned on any page.
        """

        messages: List[Any] = []
        abandoned: List[MessageId] = []
        page_token: Optional[PageToken] = None
        pages = 0
        while True:
            page = await self.query_page(
                query, page_token=page_token, label_ids=label_ids, cancel=cancel
            )
            pages += 1
            messages.extend(page.messages)
            abandoned.extend(page.abandoned)
            page_token = page.next_page_token
            if not page_token or len(messages) >= max_results:
                break
            if cancel is not None and cancel.is_set():
                self._logger.warning("query_cancelled", pages=pages, collected=len(messages))
                break

        self._logger.info(
            "query_completed",
            pages=pages,
            collected=len(messages),
            abandoned=len(abandoned),
            max_results=max_results,
        )
        return FetchResult(messages=messages, abandoned=abandoned)
