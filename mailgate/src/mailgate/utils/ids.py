"""Generate run identifiers for MailGate audit records.

What:
  Provide the helper that tags every gate run with a unique identifier.

Why:
  Several operators may run the initializer against the same backend; the run
  id ties the probe, decision, and execute audit lines of one run together.

How:
  Combine an ISO8601 UTC timestamp with a ``secrets.token_hex`` suffix.

Interfaces:
  :func:`new_run_id`.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timezone


def new_run_id() -> str:
    """Return a unique identifier such as ``2026-01-01T00:00:00+00:00#1a2b3c``."""

    timestamp = datetime.now(timezone.utc).isoformat()
    suffix = secrets.token_hex(3)
    return f"{timestamp}#{suffix}"
