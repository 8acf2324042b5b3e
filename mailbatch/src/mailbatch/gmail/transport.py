"""Gmail API adapter implementing the retrieval primitives.

What:
  Provide :class:`GmailApiTransport`, an asynchronous implementation of
  :class:`~mailbatch.gmail.types.MailTransport` backed by
  ``google-api-python-client``.

Why:
  The retrieval components only need ``list``, ``get`` and ``batch_get``. The
  client library is synchronous, and its batch API reports per-request
  failures through callbacks; this adapter turns both into the awaitable,
  positionally aligned shape the fetcher expects.

How:
  Blocking ``execute()`` calls run in :func:`asyncio.to_thread`. Batch
  requests are built with ``service.new_batch_http_request`` using the
  position of each id as its request id, so results can be re-aligned after
  the callbacks fire in arbitrary order.

Interfaces:
  :class:`GmailApiTransport`.

Invariants & Safety:
  - ``batch_get`` always returns exactly ``len(ids)`` items.
  - A per-request failure becomes a :class:`BatchItemError`; a failure of the
    whole call raises :class:`~mailbatch.errors.TransportError`.
  - Credentials are used as given; refreshing them is the caller's concern.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..config.schema import GmailSettings
from ..errors import TransportError
from .types import BatchItemError, BatchItemResult, ListPage, MessageId, PageToken, RawMessage


def _describe(exc: HttpError) -> str:
    reason = getattr(exc, "reason", None)
    return str(reason) if reason else str(exc)


def _status(exc: HttpError) -> int:
    resp = getattr(exc, "resp", None)
    try:
        return int(getattr(resp, "status", 0) or 0)
    except (TypeError, ValueError):
        return 0


class GmailApiTransport:
    """Asynchronous ``list``/``get``/``batch_get`` over the Gmail REST API.

    Args:
      service: Gmail service built with ``googleapiclient.discovery.build``.
      user_id: Mailbox owner; ``"me"`` for the authenticated user.
      message_format: ``format`` parameter for message fetches.
    """

    def __init__(self, service: Any, *, user_id: str = "me", message_format: str = "full") -> None:
        self._service = service
        self._user_id = user_id
        self._format = message_format

    @classmethod
    def from_access_token(
        cls,
        access_token: str,
        *,
        settings: Optional[GmailSettings] = None,
    ) -> "GmailApiTransport":
        """Build a transport from an already valid OAuth access token."""

        settings = settings or GmailSettings()
        credentials = Credentials(token=access_token)
        service = build("gmail", "v1", credentials=credentials, cache_discovery=False)
        return cls(service, user_id=settings.user_id, message_format=settings.message_format)

    def _messages(self) -> Any:
        return self._service.users().messages()

    async def _execute(self, request: Any) -> Dict[str, Any]:
        try:
            return await asyncio.to_thread(request.execute)
        except HttpError as exc:
            raise TransportError(f"Gmail API request failed: {_describe(exc)}", status=_status(exc)) from exc

    async def list(
        self,
        query: Optional[str] = None,
        page_token: Optional[PageToken] = None,
        label_ids: Optional[Sequence[str]] = None,
        max_results: Optional[int] = None,
    ) -> ListPage:
        kwargs: Dict[str, Any] = {"userId": self._user_id}
        if query:
            kwargs["q"] = query
        if page_token:
            kwargs["pageToken"] = page_token
        if label_ids:
            kwargs["labelIds"] = list(label_ids)
        if max_results is not None:
            kwargs["maxResults"] = max_results
        response = await self._execute(self._messages().list(**kwargs))
        ids = [item["id"] for item in response.get("messages") or () if item.get("id")]
        return ListPage(ids=ids, next_page_token=response.get("nextPageToken") or None)

    async def get(self, message_id: MessageId) -> RawMessage:
        request = self._messages().get(userId=self._user_id, id=message_id, format=self._format)
        return await self._execute(request)

    async def batch_get(self, ids: Sequence[MessageId]) -> List[BatchItemResult]:
        """Fetch ``ids`` in one HTTP batch, aligned with the input order."""

        if not ids:
            return []
        results: Dict[str, BatchItemResult] = {}

        def _collect(request_id: str, response: Any, exception: Optional[Exception]) -> None:
            if exception is None:
                results[request_id] = response
            elif isinstance(exception, HttpError):
                results[request_id] = BatchItemError(code=_status(exception), message=_describe(exception))
            else:
                results[request_id] = BatchItemError(code=0, message=str(exception))

        batch = self._service.new_batch_http_request(callback=_collect)
        messages = self._messages()
        for index, message_id in enumerate(ids):
            batch.add(
                messages.get(userId=self._user_id, id=message_id, format=self._format),
                request_id=str(index),
            )
        try:
            await asyncio.to_thread(batch.execute)
        except HttpError as exc:
            raise TransportError(f"Gmail batch request failed: {_describe(exc)}", status=_status(exc)) from exc
        return [
            results.get(str(index), BatchItemError(code=0, message="no response for request"))
            for index in range(len(ids))
        ]
