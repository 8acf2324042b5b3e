"""Default parser turning Gmail message resources into :class:`ParsedMessage`.

What:
  Convert the JSON message resource returned by ``users.messages.get`` (in
  ``full``, ``metadata`` or ``raw`` format) into a flat domain record with
  headers, labels, and a bounded text body.

Why:
  The batch fetcher only moves parsed records around; it needs a pure, total
  function to call on every successful batch item. Gmail encodes part bodies
  as base64url and nests multipart trees, so a shared helper keeps that
  decoding out of callers.

How:
  For ``full``/``metadata`` resources, walk the ``payload`` tree depth-first,
  collect headers from the top-level part, and decode the first ``text/plain``
  leaf (falling back to ``text/html``). For ``raw`` resources, decode the
  RFC 822 bytes and parse them with :class:`email.parser.BytesParser`.

Interfaces:
  :func:`parse_message`, :data:`MAX_BODY_BYTES`.

Invariants & Safety:
  - Never raises on missing optional fields; absent data yields empty values.
  - Unknown charsets and malformed ``internalDate`` values degrade to UTF-8
    text and ``None`` instead of raising.
  - Body text is decoded with ``errors="ignore"`` and truncated on encoded
    bytes so multi-byte characters are never split.
"""
from __future__ import annotations

import base64
import binascii
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from typing import Any, Dict, Mapping, Optional, Tuple

from .types import ParsedMessage, RawMessage


MAX_BODY_BYTES = 1_000_000
"""Upper bound for decoded body size in bytes."""


def parse_message(raw: RawMessage) -> ParsedMessage:
    """Parse a Gmail message resource into a :class:`ParsedMessage`.

    Args:
      raw: Message resource as returned by the Gmail API.

    Returns:
      The flattened domain record.
    """

    internal_date = _to_int(raw.get("internalDate"))
    base = dict(
        id=str(raw.get("id", "")),
        thread_id=raw.get("threadId"),
        label_ids=tuple(raw.get("labelIds") or ()),
        snippet=raw.get("snippet") or "",
        internal_date=internal_date,
    )
    if raw.get("raw"):
        headers, body = _parse_rfc822(_b64decode(raw["raw"]))
        return ParsedMessage(headers=headers, text_body=body, **base)

    payload: Mapping[str, Any] = raw.get("payload") or {}
    headers = {}
    for header in payload.get("headers") or ():
        name = str(header.get("name", "")).lower()
        if name and name not in headers:
            headers[name] = str(header.get("value", ""))
    body = _find_part_text(payload, "text/plain")
    if body is None:
        body = _find_part_text(payload, "text/html")
    return ParsedMessage(headers=headers, text_body=_truncate(body or ""), **base)


def _find_part_text(part: Mapping[str, Any], mime_type: str) -> Optional[str]:
    """Return the decoded body of the first leaf matching ``mime_type``."""

    children = part.get("parts") or ()
    if not children:
        if part.get("mimeType") != mime_type:
            return None
        data = (part.get("body") or {}).get("data")
        if not data:
            return None
        return _b64decode(data).decode("utf-8", errors="ignore")
    for child in children:
        text = _find_part_text(child, mime_type)
        if text is not None:
            return text
    return None


def _parse_rfc822(data: bytes) -> Tuple[Dict[str, str], str]:
    message = BytesParser(policy=policy.default).parsebytes(data)
    headers: Dict[str, str] = {}
    for name, value in message.items():
        headers.setdefault(name.lower(), str(value))
    return headers, _extract_body_text(message)


def _extract_body_text(message: EmailMessage) -> str:
    """Select the first textual leaf of a MIME tree, truncated."""

    if message.is_multipart():
        for part in message.walk():
            if part.is_multipart():
                continue
            if part.get_content_type().startswith("text/"):
                return _truncate(_part_text(part))
        return ""
    return _truncate(_part_text(message))


def _part_text(part: EmailMessage) -> str:
    """Decode one leaf, tolerating unknown or lying charsets."""

    try:
        payload = part.get_content()
        if isinstance(payload, bytes):
            payload = payload.decode(part.get_content_charset("utf-8"), errors="ignore")
        return payload
    except (LookupError, UnicodeError):
        data = part.get_payload(decode=True) or b""
        return data.decode("utf-8", errors="ignore")


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _b64decode(data: str) -> bytes:
    # Gmail strips base64url padding.
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, ValueError):
        return b""


def _truncate(text: str) -> str:
    encoded = text.encode("utf-8")
    if len(encoded) <= MAX_BODY_BYTES:
        return text
    return encoded[:MAX_BODY_BYTES].decode("utf-8", errors="ignore")
