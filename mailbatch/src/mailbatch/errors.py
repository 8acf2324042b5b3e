"""Exception hierarchy for the mailbatch retrieval layer.

What:
  Define the small set of exceptions that may escape from batch fetching,
  paginated search, and lookups.

Why:
  Callers must be able to tell caller misuse (an oversized batch or page) apart
  from infrastructure failures. Per-message remote errors never appear here:
  they are retried and, when exhausted, reported through
  :class:`mailbatch.gmail.types.FetchResult` instead of being raised.

How:
  A single :class:`RetrievalError` base with two specialisations. The
  validation error also subclasses :class:`ValueError` so generic argument
  checking code keeps working.

Interfaces:
  :class:`RetrievalError`, :class:`ValidationError`, :class:`TransportError`.
"""
from __future__ import annotations


class RetrievalError(Exception):
    """Base error for every failure raised by the retrieval layer."""


class ValidationError(RetrievalError, ValueError):
    """Raised when a caller asks for a batch or page larger than its hard cap.

    What:
      Signals a structural request error detected before any network call.

    Why:
      Oversized requests are rejected or throttled by the remote API. Retrying
      them would only burn quota, so they are surfaced immediately.
    """


class TransportError(RetrievalError):
    """Raised when a whole primitive call fails at the transport level.

    Attributes:
      status: HTTP status reported by the remote API, when known.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


__all__ = ["RetrievalError", "ValidationError", "TransportError"]
