"""Single-message lookups by Gmail id or RFC 822 ``Message-ID``."""
from __future__ import annotations

from typing import Any, Optional

from ..utils.ids import clean_rfc822_id
from ..utils.logging import JsonLogger, get_logger
from .parser import parse_message
from .types import MailTransport, MessageId, Parser


_LOGGER = get_logger("mailbatch.gmail.lookup")


async def get_message(
    transport: MailTransport,
    message_id: MessageId,
    *,
    parser: Parser = parse_message,
) -> Any:
    """Fetch one message through the ``get`` primitive and parse it."""

    return parser(await transport.get(message_id))


async def get_message_by_rfc822_id(
    transport: MailTransport,
    rfc822_message_id: str,
    *,
    parser: Parser = parse_message,
    logger: Optional[JsonLogger] = None,
) -> Optional[Any]:
    """Resolve a message from its ``Message-ID`` header.

    What:
      Searches ``rfc822msgid:<id>`` for a single hit and fetches it.

    Why:
      Replies and forwards reference messages by header id, not by Gmail id.
      A miss is a normal outcome for the caller to judge, so it is reported
      as ``None`` instead of an exception.

    Args:
      transport: Provider of ``list`` and ``get``.
      rfc822_message_id: Header value, with or without angle brackets.
      parser: Parser applied to the raw message.
      logger: Optional structured logger for misses.

    Returns:
      The parsed message, or ``None`` when nothing matches.
    """

    log = logger or _LOGGER
    cleaned = clean_rfc822_id(rfc822_message_id)
    listing = await transport.list(query=f"rfc822msgid:{cleaned}", max_results=1)
    if not listing.ids:
        log.error("rfc822_message_not_found", rfc822_message_id=cleaned)
        return None
    return await get_message(transport, listing.ids[0], parser=parser)
