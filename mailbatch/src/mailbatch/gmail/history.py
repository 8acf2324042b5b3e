"""Sender communication-history heuristic.

What:
  Answer "has this mailbox corresponded with this sender before?" using two
  tiny concurrent searches: mail received from the sender and mail sent to
  the sender, both restricted to before a given instant.

Why:
  Only the existence of prior contact matters, so each search asks for one or
  two ids and never paginates. For company domains any colleague of the
  sender counts as prior contact; for consumer providers (gmail.com and
  friends) a shared domain means nothing, so the full address is used.

How:
  Extract the sender's domain, pick the search term against an immutable
  public-domain set, run ``from:`` and ``to:`` listings with
  :func:`asyncio.gather`, drop the message being evaluated, and report
  whether anything is left.

Interfaces:
  :class:`SenderHistoryResolver`, :func:`extract_domain`.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from email.utils import parseaddr
from typing import AbstractSet, Optional, Union

from ..config.schema import HistorySettings
from ..utils.logging import JsonLogger, get_logger
from .types import MailTransport, MessageId


Timestamp = Union[datetime, int, float]


def extract_domain(address: str) -> Optional[str]:
    """Return the lower-cased domain of ``address`` or ``None``.

    Accepts bare addresses (``a@b.com``) and display forms
    (``Alice <a@b.com>``).
    """

    _, email_address = parseaddr(address or "")
    candidate = email_address or (address or "").strip()
    if "@" not in candidate:
        return None
    domain = candidate.rsplit("@", 1)[1].strip().strip(">").lower()
    return domain or None


def _epoch_seconds(as_of: Timestamp) -> int:
    if isinstance(as_of, datetime):
        if as_of.tzinfo is None:
            as_of = as_of.replace(tzinfo=timezone.utc)
        return int(as_of.timestamp())
    return int(as_of)


class SenderHistoryResolver:
    """Decide whether a sender has been in contact before.

    What:
      Holds the transport, the search limits, and the public-domain set.

    Why:
      The domain set is read-only configuration; injecting it keeps the
      heuristic testable without touching module globals.

    How:
      :meth:`has_prior_communication` chooses the term and delegates to
      :meth:`has_prior_communication_with`, which runs the two searches.
    """

    def __init__(
        self,
        transport: MailTransport,
        *,
        settings: Optional[HistorySettings] = None,
        public_domains: Optional[AbstractSet[str]] = None,
        logger: Optional[JsonLogger] = None,
    ) -> None:
        self._transport = transport
        self._settings = settings or HistorySettings()
        domains = self._settings.public_domains if public_domains is None else public_domains
        self._public_domains = frozenset(domain.lower() for domain in domains)
        self._logger = logger or get_logger("mailbatch.gmail.history")

    @property
    def public_domains(self) -> frozenset:
        return self._public_domains

    def search_term_for(self, sender: str) -> str:
        """Return the address or domain to search for ``sender``.

        The bare address is returned for public providers and when no domain
        can be extracted; the domain otherwise.
        """

        _, address = parseaddr(sender or "")
        address = address or (sender or "").strip()
        domain = extract_domain(address)
        if domain is None or domain in self._public_domains:
            return address
        return domain

    async def has_prior_communication(
        self,
        sender: str,
        as_of: Timestamp,
        exclude_message_id: Optional[MessageId] = None,
    ) -> bool:
        """Return ``True`` when mail was exchanged with ``sender`` before ``as_of``.

        Args:
          sender: Sender address, bare or in display form.
          as_of: Upper bound; ``datetime`` (naive means UTC) or epoch seconds.
          exclude_message_id: Message under evaluation, ignored in the results.
        """

        term = self.search_term_for(sender)
        return await self.has_prior_communication_with(term, as_of, exclude_message_id)

    async def has_prior_communication_with(
        self,
        term: str,
        as_of: Timestamp,
        exclude_message_id: Optional[MessageId] = None,
    ) -> bool:
        """Search for ``term`` exactly, with no domain heuristic."""

        before = _epoch_seconds(as_of)
        searches = [
            asyncio.ensure_future(
                self._transport.list(
                    query=f"from:{term} before:{before}",
                    max_results=self._settings.incoming_limit,
                )
            ),
            asyncio.ensure_future(
                self._transport.list(
                    query=f"to:{term} before:{before}",
                    max_results=self._settings.outgoing_limit,
                )
            ),
        ]
        try:
            incoming, outgoing = await asyncio.gather(*searches)
        except Exception:
            # Cancel and reap the sibling search.
            for search in searches:
                search.cancel()
            await asyncio.gather(*searches, return_exceptions=True)
            raise
        previous = [
            message_id
            for message_id in [*incoming.ids, *outgoing.ids]
            if message_id != exclude_message_id
        ]
        self._logger.debug(
            "prior_communication_checked",
            term=term,
            before=before,
            matches=len(previous),
        )
        return bool(previous)
