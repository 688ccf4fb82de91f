"""Facade for the backend HTTP adapter.

What:
  Surface :class:`~mailgate.api.client.InitApiClient` and its result types.

Why:
  Callers depend on the outcome types, not on the request plumbing.

Interfaces:
  ``InitApiClient``, ``InitOutcome``, ``OutcomeKind``, ``InitializationState``.
"""

from .client import InitApiClient, InitializationState, InitOutcome, OutcomeKind

__all__ = ["InitApiClient", "InitializationState", "InitOutcome", "OutcomeKind"]
