"""Facade for the Gmail retrieval layer.

What:
  Surface the batch fetcher, paginated query, sender-history resolver, single
  message lookups, the default parser, and the value types they exchange.

Why:
  Callers compose these pieces around one transport; importing from this
  namespace keeps them independent of the module layout. The Google client
  adapter is not imported here so the core stays usable with any transport.

Interfaces:
  ``BatchFetcher``, ``PaginatedQuery``, ``QueryPage``,
  ``SenderHistoryResolver``, ``extract_domain``, ``get_message``,
  ``get_message_by_rfc822_id``, ``parse_message`` and the types from
  :mod:`mailbatch.gmail.types`.
"""

from .batch import BatchFetcher, linear_backoff
from .history import SenderHistoryResolver, extract_domain
from .lookup import get_message, get_message_by_rfc822_id
from .parser import parse_message
from .query import PaginatedQuery, QueryPage
from .types import (
    BatchItemError,
    FetchResult,
    ListPage,
    MailTransport,
    ParsedMessage,
    is_batch_error,
)

__all__ = [
    "BatchFetcher",
    "linear_backoff",
    "PaginatedQuery",
    "QueryPage",
    "SenderHistoryResolver",
    "extract_domain",
    "get_message",
    "get_message_by_rfc822_id",
    "parse_message",
    "BatchItemError",
    "FetchResult",
    "ListPage",
    "MailTransport",
    "ParsedMessage",
    "is_batch_error",
]
