"""Pydantic models describing the MailGate run configuration."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_BASE_URL = "http://127.0.0.1:8787/api"
DEFAULT_TIMEOUT_S = 10.0
MAX_TIMEOUT_S = 300.0


class GateConfig(BaseModel):
    """Immutable configuration for one gate run.

    What:
      Hold the override flag, the confirmation bypass, the JWT secret, the
      backend base URL, and the network timeout.

    Why:
      The gate must never read ambient state. Building one frozen value per run
      and passing it by parameter keeps every decision traceable to its inputs.

    How:
      ``frozen=True`` rejects mutation after construction and ``extra="forbid"``
      rejects unknown keys. The secret is excluded from ``repr``.

    Attributes:
      force: Re-initialize even when the backend reports it is initialized.
      skip_confirm: Do not ask the operator before executing.
      secret: JWT secret proving the caller may initialize the backend.
      base_url: API root, without trailing slash.
      timeout_s: Upper bound in seconds for each network call, at most
        :data:`MAX_TIMEOUT_S` and always finite.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    force: bool = False
    skip_confirm: bool = False
    secret: str = Field(default="", repr=False)
    base_url: str = DEFAULT_BASE_URL
    timeout_s: float = Field(
        default=DEFAULT_TIMEOUT_S, gt=0, le=MAX_TIMEOUT_S, allow_inf_nan=False
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("base_url must not be empty")
        return value.rstrip("/")

    @property
    def has_secret(self) -> bool:
        return bool(self.secret)


class FileSettings(BaseModel):
    """Optional YAML settings file; never carries the secret."""

    model_config = ConfigDict(extra="forbid")

    base_url: Optional[str] = None
    timeout_s: Optional[float] = Field(
        default=None, gt=0, le=MAX_TIMEOUT_S, allow_inf_nan=False
    )
