"""Identifier helpers shared by the CLI and retrieval components.

What:
  Generate run identifiers that tag every log line emitted during one CLI
  invocation, and normalise RFC 822 ``Message-ID`` values for search.

Why:
  A single retrieval call can emit many retry and abandonment events; a shared
  run id lets operators group them. ``Message-ID`` headers arrive with or
  without angle brackets, while the remote search grammar expects the bare
  value.

How:
  Combine a UTC timestamp with a short random token, and strip brackets and
  whitespace from message ids.

Interfaces:
  :func:`new_run_id`, :func:`clean_rfc822_id`.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timezone


def new_run_id() -> str:
    """Return a unique identifier for a CLI run.

    What:
      Emits an ISO8601 timestamp suffixed with a six-hex-character random token.

    Why:
      Run ids are bound to the retrieval loggers and the CLI lifecycle
      messages of one invocation; combining
      time and randomness keeps them sortable while avoiding collisions between
      concurrent invocations.

    Returns:
      Unique identifier string (e.g., ``2024-01-01T00:00:00+00:00#1a2b3c``).
    """

    timestamp = datetime.now(timezone.utc).isoformat()
    suffix = secrets.token_hex(3)
    return f"{timestamp}#{suffix}"


def clean_rfc822_id(value: str) -> str:
    """Strip angle brackets and surrounding whitespace from a ``Message-ID``."""

    return value.strip().replace("<", "").replace(">", "")
