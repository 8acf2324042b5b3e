"""
Module: mailbatch.__init__

What:
  Aggregate package exports for mailbatch, the retrieval layer that pulls
  email data out of the quota-limited Gmail API, and expose the namespace
  segments (configuration, Gmail retrieval, utilities).

Why:
  Applications build on the batch fetcher, paginated query, and sender
  history resolver; keeping the public surface explicit lets the internal
  layout evolve without breaking importers.

Interfaces:
  - config: Runtime configuration loader and schema.
  - errors: Exceptions that may escape the retrieval layer.
  - gmail: Batch fetch, paginated search, sender history, lookups.
  - utils: Structured logging and identifier helpers.

Invariants:
  - The Google client adapter (``gmail.transport``) is imported lazily by
    callers that need it; importing the package never requires credentials.
"""

__all__ = [
    "config",
    "errors",
    "gmail",
    "utils",
]

__version__ = "0.1.0"
