"""Reference backend for the initialization protocol.

Interfaces:
  ``create_app``, ``InitService``, ``InitResult``, ``InMemoryInitStore``.
"""

from .app import DEPRECATION_WARNING, create_app
from .init_service import InitResult, InitService, InMemoryInitStore

__all__ = ["DEPRECATION_WARNING", "create_app", "InitResult", "InitService", "InMemoryInitStore"]
