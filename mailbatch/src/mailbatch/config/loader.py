"""Strict loader for the mailbatch runtime configuration.

What:
  Locate, parse, validate, and cache ``config.yaml``, which tunes the Gmail
  call parameters, request-size budgets, retry policy, and the public-domain
  heuristic used by prior-communication checks.

Why:
  Configuration lives outside the package and can be malformed. Centralising
  the parsing keeps validation consistent so the retrieval components can
  trust the caps they enforce (a typo must never raise the batch cap above
  what the remote API accepts).

How:
  Resolve candidate file locations based on explicit parameters, the
  ``MAILBATCH_CONFIG_PATH`` environment variable, and defaults. Parse YAML
  with PyYAML's ``safe_load`` and validate with the Pydantic models from
  :mod:`mailbatch.config.schema`.

Interfaces:
  :func:`load_runtime_config`, :func:`get_runtime_config`,
  :func:`reset_runtime_config`, :func:`parse_runtime_config`,
  :class:`ConfigLoadError`, :class:`RuntimeConfigError`.

Invariants:
  - All payloads pass strict Pydantic validation before being returned.
  - The cache respects explicit reload requests and path precedence.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import yaml
from pydantic import ValidationError as _PydanticValidationError

from .schema import RuntimeConfig


class ConfigLoadError(Exception):
    """Base error for configuration parsing or validation failures."""


class RuntimeConfigError(ConfigLoadError):
    """Error raised when ``config.yaml`` cannot be located, read, or validated."""


_CONFIG_ENV = "MAILBATCH_CONFIG_PATH"
_DEFAULT_LOCATIONS: Tuple[Path, ...] = (
    Path("config.yaml"),
    Path("/etc/mailbatch/config.yaml"),
)
_RUNTIME_CACHE: Optional[Tuple[Path, RuntimeConfig]] = None


def _candidate_paths(path: Optional[Path]) -> Iterable[Path]:
    """Yield configuration file locations in priority order.

    What:
      Produce the ordered, deduplicated list of paths that may hold
      ``config.yaml``.

    How:
      Check the explicit argument, then ``MAILBATCH_CONFIG_PATH``, then the
      default locations, expanding ``~`` on each.

    Args:
      path: Explicit path requested by the caller, or ``None``.

    Yields:
      Candidate paths ordered from most specific to least specific.
    """

    seen: set[Path] = set()
    candidates = []
    if path is not None:
        candidates.append(path)
    env_path = os.environ.get(_CONFIG_ENV)
    if env_path:
        candidates.append(Path(env_path))
    candidates.extend(_DEFAULT_LOCATIONS)
    for raw in candidates:
        candidate = raw.expanduser()
        if candidate not in seen:
            seen.add(candidate)
            yield candidate


def parse_runtime_config(text: str, source: str = "<string>") -> RuntimeConfig:
    """Parse and validate configuration text.

    An empty document yields the all-defaults configuration.

    Raises:
      RuntimeConfigError: If the YAML is invalid, is not a mapping, or fails
        schema validation.
    """

    try:
        payload: Any = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise RuntimeConfigError(f"Invalid YAML in {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise RuntimeConfigError(f"{source} must contain a mapping at the top-level")
    try:
        return RuntimeConfig.model_validate(payload)
    except _PydanticValidationError as exc:
        raise RuntimeConfigError(f"Invalid configuration in {source}: {exc}") from exc


def _load_runtime_from_path(path: Path) -> RuntimeConfig:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RuntimeConfigError(f"Configuration file missing: {path}") from exc
    except OSError as exc:  # pragma: no cover - filesystem surface
        raise RuntimeConfigError(f"Unable to read configuration file {path}: {exc}") from exc
    return parse_runtime_config(text, str(path))


def load_runtime_config(
    path: Optional[Path | str] = None,
    *,
    reload: bool = False,
    required: bool = False,
) -> RuntimeConfig:
    """Resolve, parse, and cache the runtime configuration.

    What:
      Locate ``config.yaml`` using the precedence chain, parse it, and return
      a validated :class:`RuntimeConfig`.

    Why:
      Every field carries a default equal to the remote API's documented
      limits, so a missing file is not an error unless the caller insists on
      one (``required``) or named an explicit path.

    How:
      Consult the cache unless ``reload`` is requested, iterate candidate
      paths until one exists, and store the successful result.

    Args:
      path: Optional explicit location of ``config.yaml``.
      reload: Force a fresh load bypassing the cache.
      required: Raise when no candidate file exists instead of returning
        defaults.

    Returns:
      The validated runtime configuration.

    Raises:
      RuntimeConfigError: If a file is invalid, an explicit path is missing,
        or ``required`` is set and nothing was found.
    """

    global _RUNTIME_CACHE

    requested_path = Path(path).expanduser() if isinstance(path, (str, Path)) else None
    if not reload and _RUNTIME_CACHE is not None:
        cached_path, cached_config = _RUNTIME_CACHE
        if requested_path is None or cached_path == requested_path:
            return cached_config

    if requested_path is not None and not requested_path.exists():
        raise RuntimeConfigError(f"Configuration file missing: {requested_path}")

    searched: list[str] = []
    for candidate in _candidate_paths(requested_path):
        if not candidate.exists():
            searched.append(str(candidate))
            continue
        config = _load_runtime_from_path(candidate)
        _RUNTIME_CACHE = (candidate, config)
        return config

    if required:
        listing = ", ".join(searched) if searched else "<none>"
        raise RuntimeConfigError(f"Unable to locate config.yaml (searched: {listing})")
    return RuntimeConfig()


def get_runtime_config() -> RuntimeConfig:
    """Return the cached runtime configuration, loading it on demand."""

    return load_runtime_config()


def reset_runtime_config() -> None:
    """Clear the runtime configuration cache."""

    global _RUNTIME_CACHE
    _RUNTIME_CACHE = None
