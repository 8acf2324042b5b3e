"""mailbatch command-line interface.

What:
  Provide a Typer-based entry point exposing the retrieval layer to
  operators: ``fetch`` messages by id, ``search`` with pagination,
  ``prior-contact`` checks for a sender, and ``show-config``.

Why:
  Diagnosing quota problems and partial results is easiest with the same code
  paths the application uses. Every command goes through the real fetcher,
  query, and resolver so retry behaviour and logs match production.

How:
  Load the runtime configuration, build a Gmail transport from an access
  token, assemble the components through :mod:`mailbatch._wiring`, run the
  coroutine with :func:`asyncio.run`, and print JSON on ``stdout``. Structured
  retry and abandonment logs go to ``stderr``.

Interfaces:
  ``app`` (Typer application), ``fetch``, ``search``, ``prior_contact``,
  ``show_config``.

Invariants & Safety:
  - Exit codes: ``0`` success, ``1`` misuse or failure, ``2`` when ids were
    abandoned after retries.
  - Access tokens are read from ``--token`` or ``MAILBATCH_ACCESS_TOKEN`` and
    never logged.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, List, Optional

import typer

from ._wiring import build_retrieval, parse_as_of, result_payload
from .config.loader import ConfigLoadError, load_runtime_config
from .config.schema import RuntimeConfig
from .errors import RetrievalError
from .gmail.types import MailTransport
from .utils.ids import new_run_id


app = typer.Typer(help="Batched and paginated Gmail retrieval")

LOGGER = logging.getLogger("mailbatch.cli")

EXIT_PARTIAL = 2


def _load_runtime(config_path: Optional[str]) -> RuntimeConfig:
    try:
        return load_runtime_config(config_path)
    except ConfigLoadError as exc:
        LOGGER.error("runtime_load_failed: %s", exc)
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _build_transport(runtime: RuntimeConfig, token: Optional[str]) -> MailTransport:
    """Create the Gmail transport; isolated so tests can substitute a fake."""

    if not token:
        typer.echo("An access token is required (--token or MAILBATCH_ACCESS_TOKEN)", err=True)
        raise typer.Exit(code=1)
    from .gmail.transport import GmailApiTransport

    return GmailApiTransport.from_access_token(token, settings=runtime.gmail)


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except RetrievalError as exc:
        LOGGER.error("retrieval_failed: %s", exc)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _emit(payload: Any) -> None:
    typer.echo(json.dumps(payload, default=str, sort_keys=True))


@app.command("fetch")
def fetch(
    ids: List[str] = typer.Argument(..., help="Gmail message ids (at most one batch)"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to config.yaml"),
    token: Optional[str] = typer.Option(
        None, "--token", envvar="MAILBATCH_ACCESS_TOKEN", help="OAuth access token"
    ),
) -> None:
    """Fetch messages by id with per-item retry."""

    run_id = new_run_id()
    runtime = _load_runtime(config_path)
    retrieval = build_retrieval(runtime, _build_transport(runtime, token), run_id=run_id)
    LOGGER.info("fetch_started run_id=%s count=%s", run_id, len(ids))
    result = _run(retrieval.fetcher.fetch_batch(ids))
    _emit(result_payload(result))
    LOGGER.info(
        "fetch_completed run_id=%s delivered=%s abandoned=%s",
        run_id,
        len(result.messages),
        len(result.abandoned),
    )
    if result.abandoned:
        raise typer.Exit(code=EXIT_PARTIAL)


@app.command("search")
def search(
    query: str = typer.Argument(..., help="Search string in Gmail query syntax"),
    max_results: int = typer.Option(20, "--max-results", help="Desired number of messages"),
    labels: Optional[List[str]] = typer.Option(None, "--label", help="Label id filter (repeatable)"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to config.yaml"),
    token: Optional[str] = typer.Option(
        None, "--token", envvar="MAILBATCH_ACCESS_TOKEN", help="OAuth access token"
    ),
) -> None:
    """Search and accumulate messages across pages."""

    run_id = new_run_id()
    runtime = _load_runtime(config_path)
    retrieval = build_retrieval(runtime, _build_transport(runtime, token), run_id=run_id)
    LOGGER.info("search_started run_id=%s max_results=%s", run_id, max_results)
    result = _run(retrieval.query.query_pages(query, max_results=max_results, label_ids=labels))
    _emit(result_payload(result))
    if result.abandoned:
        raise typer.Exit(code=EXIT_PARTIAL)


@app.command("prior-contact")
def prior_contact(
    sender: str = typer.Argument(..., help="Sender address"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="ISO8601 time or epoch seconds; default now"),
    exclude: Optional[str] = typer.Option(None, "--exclude", help="Message id to ignore"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to config.yaml"),
    token: Optional[str] = typer.Option(
        None, "--token", envvar="MAILBATCH_ACCESS_TOKEN", help="OAuth access token"
    ),
) -> None:
    """Report whether mail was exchanged with ``sender`` before ``--as-of``."""

    try:
        moment = parse_as_of(as_of)
    except ValueError as exc:
        typer.echo(f"Invalid --as-of value: {as_of}", err=True)
        raise typer.Exit(code=1) from exc
    run_id = new_run_id()
    runtime = _load_runtime(config_path)
    retrieval = build_retrieval(runtime, _build_transport(runtime, token), run_id=run_id)
    found = _run(retrieval.history.has_prior_communication(sender, moment, exclude))
    _emit(
        {
            "sender": sender,
            "search_term": retrieval.history.search_term_for(sender),
            "as_of": moment.isoformat(),
            "prior_communication": found,
        }
    )


@app.command("show-config")
def show_config(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to config.yaml"),
) -> None:
    """Print the effective, validated configuration."""

    runtime = _load_runtime(config_path)
    payload = runtime.model_dump(mode="json")
    payload["history"]["public_domains"] = sorted(payload["history"]["public_domains"])
    _emit(payload)


def main() -> None:
    """Execute the Typer application entry point."""

    app()


if __name__ == "__main__":  # pragma: no cover
    main()
