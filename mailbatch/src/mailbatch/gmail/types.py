"""Shared value types and the transport protocol for Gmail retrieval.

What:
  Name the handles, wire records, and result containers that flow between the
  transport, the batch fetcher, the paginated query, and callers.

Why:
  The retrieval layer treats raw messages and parsed messages as opaque; the
  only structure it relies on is the positional alignment of batch results
  and the split between delivered and abandoned ids. Spelling those contracts
  out as types keeps fakes and the real Gmail adapter interchangeable.

How:
  Plain aliases for opaque values, frozen dataclasses for results, and a
  :class:`typing.Protocol` describing the three asynchronous primitives.

Interfaces:
  ``MessageId``, ``PageToken``, ``RawMessage``, :class:`BatchItemError`,
  :func:`is_batch_error`, :class:`ListPage`, :class:`ParsedMessage`,
  :class:`FetchResult`, :class:`MailTransport`, ``Parser``.

Invariants & Safety:
  - ``MailTransport.batch_get`` returns one item per requested id, in request
    order; a failed item is a :class:`BatchItemError`.
  - Every id handed to the batch fetcher ends up either in
    :attr:`FetchResult.messages` (as a parsed message) or in
    :attr:`FetchResult.abandoned`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)


MessageId = str
PageToken = str
RawMessage = Mapping[str, Any]

T = TypeVar("T")


@dataclass(frozen=True)
class BatchItemError:
    """Per-item failure reported inside a batch response.

    Attributes:
      code: HTTP-style status of the failed sub-request (``0`` when unknown).
      message: Remote error description.
    """

    code: int
    message: str


BatchItemResult = Union[RawMessage, BatchItemError]
Parser = Callable[[RawMessage], Any]


def is_batch_error(item: object) -> bool:
    """Return ``True`` when ``item`` is the failure arm of a batch result.

    Transports that relay the raw JSON envelope (``{"error": {...}}``) are
    accepted as well as :class:`BatchItemError` instances.
    """

    if isinstance(item, BatchItemError):
        return True
    return isinstance(item, Mapping) and isinstance(item.get("error"), Mapping)


def as_batch_error(item: object) -> BatchItemError:
    """Normalise either failure representation to :class:`BatchItemError`."""

    if isinstance(item, BatchItemError):
        return item
    error = item["error"]  # type: ignore[index]
    return BatchItemError(code=int(error.get("code") or 0), message=str(error.get("message", "")))


@dataclass(frozen=True)
class ListPage:
    """One page of ids returned by the ``list`` primitive."""

    ids: List[MessageId] = field(default_factory=list)
    next_page_token: Optional[PageToken] = None


@dataclass(frozen=True)
class ParsedMessage:
    """Domain record produced by :func:`mailbatch.gmail.parser.parse_message`.

    Attributes:
      id: Gmail message id.
      thread_id: Gmail thread id, when present.
      label_ids: Labels attached to the message.
      snippet: Short preview supplied by Gmail.
      headers: Lower-cased header names mapped to their first value.
      internal_date: Receipt time in epoch milliseconds, when present.
      text_body: Best-effort plain text body (HTML when no text part exists).
    """

    id: MessageId
    thread_id: Optional[str] = None
    label_ids: Tuple[str, ...] = ()
    snippet: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    internal_date: Optional[int] = None
    text_body: str = ""

    @property
    def subject(self) -> str:
        return self.headers.get("subject", "")

    @property
    def sender(self) -> str:
        return self.headers.get("from", "")


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of a retrieval that may be partial.

    What:
      Separates the messages that were delivered from the ids given up on
      after the retry budget ran out (or the caller cancelled).

    Why:
      Dropping ids silently hides data loss; exposing ``abandoned`` lets the
      caller log, alert, or retry at a higher level.
    """

    messages: List[T] = field(default_factory=list)
    abandoned: List[MessageId] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.abandoned

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self) -> Iterator[T]:
        return iter(self.messages)


class MailTransport(Protocol):
    """The three remote primitives consumed by the retrieval layer."""

    async def list(
        self,
        query: Optional[str] = None,
        page_token: Optional[PageToken] = None,
        label_ids: Optional[Sequence[str]] = None,
        max_results: Optional[int] = None,
    ) -> ListPage:
        ...

    async def get(self, message_id: MessageId) -> RawMessage:
        ...

    async def batch_get(self, ids: Sequence[MessageId]) -> Sequence[BatchItemResult]:
        ...
