"""Expose the public utility surface for MailGate.

What:
  Re-export the audit logger and run-id helpers.

Why:
  Call sites import ``from mailgate.utils import get_logger`` without depending
  on the underlying module layout.

Interfaces:
  ``JsonLogger``, ``get_logger``, ``new_run_id``.
"""

from .ids import new_run_id
from .logging import JsonLogger, get_logger

__all__ = ["JsonLogger", "get_logger", "new_run_id"]
