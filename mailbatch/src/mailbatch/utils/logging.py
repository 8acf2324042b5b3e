"""mailbatch logging helpers with deterministic JSON emission and redaction.

What:
  Offer a tiny facade over Python streams so every retrieval component can
  emit JSON log lines with consistent fields and automatic removal of message
  content.

Why:
  Retries, abandoned ids, and rejected oversized requests are the only signal
  an operator gets about partial results. A structured layout keeps those
  events greppable while preventing snippets or bodies fetched from the
  mailbox from leaking into shared log storage.

How:
  Provide a :class:`JsonLogger` dataclass that accepts a target stream and
  enforces uppercase severity levels. Structured fields are scrubbed via a
  recursive redaction helper (mappings and lists) before being serialised with
  ``json.dump``. Values that JSON cannot encode natively are rendered with
  ``str``.

Interfaces:
  :class:`JsonLogger`, :func:`get_logger`.

Invariants & Safety:
  - Every payload includes an ISO8601 timestamp, severity, and component name.
  - Context fields bound at construction (for example ``run_id``) appear on
    every entry; per-call fields override them.
  - Known sensitive keys (``subject``, ``body``, ``text_body``, ``snippet``,
    ``preview``) are replaced with ``[redacted]`` at any nesting depth.
  - Streams are flushed after every write.
  - The event name is positional-only in the level shortcuts, so a field
    may itself be called ``message``.
"""
from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Mapping, Optional


REDACTED = "[redacted]"

SENSITIVE_KEYS: FrozenSet[str] = frozenset(
    {"subject", "body", "text_body", "snippet", "preview"}
)


@dataclass
class JsonLogger:
    """Structured JSON logger with automatic redaction.

    What:
      Emits single-line JSON entries carrying a timestamp, severity, component
      tag, and the structured fields supplied by the caller.

    Why:
      The retrieval layer reports partial failures only through logs and
      result objects; a uniform schema lets tests and dashboards parse them
      without ad-hoc heuristics.

    How:
      Stores the destination stream and component label, then exposes
      :meth:`log` plus level shortcuts that merge a canonical payload with the
      redacted fields before serialising the result.
    """

    stream: Any = field(default_factory=lambda: sys.stdout)
    component: str = "mailbatch"
    context: Dict[str, Any] = field(default_factory=dict)

    def log(self, level: str, message: str, *, extra: Optional[Mapping[str, Any]] = None) -> None:
        """Emit a structured JSON log entry.

        Args:
          level: Severity such as ``"info"`` or ``"error"``; normalised to
            upper case.
          message: Short event name.
          extra: Optional structured fields, redacted recursively.
        """

        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "lvl": level.upper(),
            "msg": message,
            "component": self.component,
        }
        if self.context:
            payload.update(self._redact(self.context))
        if extra:
            payload.update(self._redact(extra))
        json.dump(payload, self.stream, separators=(",", ":"), default=str)
        self.stream.write("\n")
        self.stream.flush()

    def debug(self, message: str, /, **kwargs: Any) -> None:
        self.log("DEBUG", message, extra=kwargs)

    def info(self, message: str, /, **kwargs: Any) -> None:
        self.log("INFO", message, extra=kwargs)

    def warning(self, message: str, /, **kwargs: Any) -> None:
        """Log a recoverable condition such as a retry."""

        self.log("WARN", message, extra=kwargs)

    def error(self, message: str, /, **kwargs: Any) -> None:
        """Log a failure; per-message batch errors and abandonment use this."""

        self.log("ERROR", message, extra=kwargs)

    def child(self, component: str) -> "JsonLogger":
        """Return a logger sharing this stream and context under ``component``."""

        return JsonLogger(stream=self.stream, component=component, context=dict(self.context))

    @staticmethod
    def _redact(data: Any) -> Any:
        """Mask sensitive keys in ``data`` recursively.

        What:
          Produces a copy of ``data`` where predefined fields are replaced with
          the ``[redacted]`` sentinel.

        How:
          Walks mappings and lists, applying the sentinel to known keys while
          preserving structure for downstream parsing.

        Args:
          data: Arbitrary structured value.

        Returns:
          A redacted copy of ``data``.
        """

        if isinstance(data, Mapping):
            result: Dict[str, Any] = {}
            for key, value in data.items():
                if key in SENSITIVE_KEYS:
                    result[key] = REDACTED
                else:
                    result[key] = JsonLogger._redact(value)
            return result
        if isinstance(data, (list, tuple)):
            return [JsonLogger._redact(item) for item in data]
        return data


def get_logger(
    component: str,
    *,
    stream: Any = None,
    context: Optional[Mapping[str, Any]] = None,
) -> JsonLogger:
    """Construct a :class:`JsonLogger` for ``component``.

    Args:
      component: Logical subsystem name included in every payload.
      stream: Optional destination; defaults to ``stdout``.
      context: Fields added to every entry, such as a ``run_id``.

    Returns:
      Configured :class:`JsonLogger` instance.
    """

    fields = dict(context or {})
    if stream is None:
        return JsonLogger(component=component, context=fields)
    return JsonLogger(stream=stream, component=component, context=fields)
