"""mailbatch configuration package.

What:
  Provide a single import surface for configuration loading and the Pydantic
  schema types consumed by the retrieval components and the CLI.

Why:
  Components receive their settings as typed models; keeping the loader and
  schema behind one namespace stops callers from bypassing validation.

Interfaces:
  - get_runtime_config / load_runtime_config / reset_runtime_config /
    parse_runtime_config: Resolve and cache ``config.yaml``.
  - RuntimeConfig and its sections; DEFAULT_PUBLIC_DOMAINS and the hard caps.
"""

from .loader import (
    ConfigLoadError,
    RuntimeConfigError,
    get_runtime_config,
    load_runtime_config,
    parse_runtime_config,
    reset_runtime_config,
)
from .schema import (
    DEFAULT_PUBLIC_DOMAINS,
    MAX_BATCH_SIZE,
    MAX_PAGE_SIZE,
    GmailSettings,
    HistorySettings,
    LoggingSettings,
    RetrievalSettings,
    RuntimeConfig,
)

__all__ = [
    "ConfigLoadError",
    "RuntimeConfigError",
    "get_runtime_config",
    "load_runtime_config",
    "parse_runtime_config",
    "reset_runtime_config",
    "DEFAULT_PUBLIC_DOMAINS",
    "MAX_BATCH_SIZE",
    "MAX_PAGE_SIZE",
    "GmailSettings",
    "HistorySettings",
    "LoggingSettings",
    "RetrievalSettings",
    "RuntimeConfig",
]
