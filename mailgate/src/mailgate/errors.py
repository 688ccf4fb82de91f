"""Exception hierarchy shared by the MailGate packages.

What:
  Define the typed failures raised by credential generation, configuration
  loading, and the HTTP adapter that talks to the backend.

Why:
  The CLI boundary must translate every failure into exactly one operator
  message and one exit code. Keeping the failures under a common base makes
  that translation explicit and stops unrelated exceptions from being mistaken
  for protocol outcomes.

How:
  Derive every error from :class:`MailGateError`. ``InvalidSpec`` also derives
  from :class:`ValueError` because it signals a caller-side precondition
  violation. Abort reasons such as a declined confirmation are not exceptions;
  they live in :mod:`mailgate.core.gate` as enum members.

Interfaces:
  :class:`MailGateError`, :class:`InvalidSpec`, :class:`EntropyUnavailable`,
  :class:`ConfigError`, :class:`ConnectivityError`.
"""
from __future__ import annotations

from typing import Optional


class MailGateError(Exception):
    """Base class for MailGate failures."""


class InvalidSpec(MailGateError, ValueError):
    """Raised when a credential specification cannot be satisfied."""


class EntropyUnavailable(MailGateError):
    """Raised when the strong entropy source is required but missing."""


class ConfigError(MailGateError):
    """Raised when the gate configuration cannot be loaded or validated."""


class ConnectivityError(MailGateError):
    """Transport or response-shape failure while talking to the backend.

    What:
      Carry a human-readable summary alongside the underlying exception so the
      operator sees the real transport failure.

    Why:
      A valid "not initialized" answer and an unreachable backend must never be
      confused; the probe raises this error for the latter only.

    How:
      Store ``cause`` as an attribute and chain it through ``raise ... from``
      at the call sites.

    Attributes:
      cause: The original exception, when one exists.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause
