"""Expose the public utility surface for mailbatch.

What:
  Re-export the structured logger and identifier helpers used across the
  retrieval components and the CLI.

Interfaces:
  ``JsonLogger``, ``get_logger``, ``new_run_id``, ``clean_rfc822_id``.
"""

from .ids import clean_rfc822_id, new_run_id
from .logging import JsonLogger, get_logger

__all__ = [
    "JsonLogger",
    "get_logger",
    "new_run_id",
    "clean_rfc822_id",
]
