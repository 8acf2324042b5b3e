"""Pydantic models describing the mailbatch runtime configuration."""
from __future__ import annotations

from typing import FrozenSet, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Hard ceilings imposed by the remote API. Configuration may lower them, never raise them.
MAX_BATCH_SIZE = 100
MAX_PAGE_SIZE = 20

DEFAULT_PUBLIC_DOMAINS: FrozenSet[str] = frozenset(
    {
        "gmail.com",
        "yahoo.com",
        "hotmail.com",
        "outlook.com",
        "aol.com",
        "icloud.com",
        "me.com",
        "protonmail.com",
        "zoho.com",
        "yandex.com",
        "fastmail.com",
        "gmx.com",
        "hey.com",
    }
)


class GmailSettings(BaseModel):
    """Parameters forwarded to every Gmail API call."""

    model_config = ConfigDict(extra="forbid")

    user_id: str = "me"
    message_format: Literal["full", "metadata", "raw"] = "full"


class RetrievalSettings(BaseModel):
    """Request-size budgets and retry policy for batch and page fetches."""

    model_config = ConfigDict(extra="forbid")

    batch_limit: int = Field(default=MAX_BATCH_SIZE, gt=0, le=MAX_BATCH_SIZE)
    page_size_limit: int = Field(default=MAX_PAGE_SIZE, gt=0, le=MAX_PAGE_SIZE)
    max_retries: int = Field(default=3, ge=0)
    backoff_unit_s: float = Field(default=1.0, ge=0)


class HistorySettings(BaseModel):
    """Search limits and domain heuristics for prior-communication checks."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    incoming_limit: int = Field(default=2, gt=0, le=MAX_PAGE_SIZE)
    outgoing_limit: int = Field(default=1, gt=0, le=MAX_PAGE_SIZE)
    public_domains: FrozenSet[str] = DEFAULT_PUBLIC_DOMAINS

    @field_validator("public_domains", mode="before")
    @classmethod
    def _normalise_domains(cls, value: object) -> FrozenSet[str]:
        if isinstance(value, str) or not hasattr(value, "__iter__"):
            raise ValueError("public_domains expected a list of domains")
        domains: List[str] = []
        for item in value:  # type: ignore[union-attr]
            if not isinstance(item, str) or not item.strip():
                raise ValueError("public_domains entries must be non-empty strings")
            domains.append(item.strip().lstrip("@").lower())
        return frozenset(domains)


class LoggingSettings(BaseModel):
    """Structured logging options."""

    model_config = ConfigDict(extra="forbid")

    component: str = "mailbatch"


class RuntimeConfig(BaseModel):
    """Root configuration loaded from ``config.yaml``."""

    model_config = ConfigDict(extra="forbid")

    version: Literal[1] = 1
    gmail: GmailSettings = Field(default_factory=GmailSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
