"""Audit trail for initialization runs.

What:
  Emit one JSON line per gate transition or backend call, tagged with the run
  that produced it, with credentials masked before anything is written.

Why:
  Initialization is destructive. Operators need a greppable record of what was
  probed, what was decided, and what the backend answered, and that record must
  never contain the JWT secret or a generated password.

How:
  A :class:`JsonLogger` carries a stream, a component tag, and a ``context``
  mapping that is merged into every record. :meth:`JsonLogger.bind` returns a
  copy with more context, so a run binds its ``run_id`` once and hands the
  bound logger to the gate.

Interfaces:
  :class:`JsonLogger`, :func:`get_logger`.

Invariants & Safety:
  - Every record has ``ts``, ``lvl``, ``msg`` and ``component``; bound context
    never overrides them.
  - Values under :data:`SENSITIVE_KEYS` become ``[redacted]`` at any depth,
    including inside bound context.
  - The stream is flushed after each record.
"""
from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping


REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"secret", "password", "jwt_secret", "token"})
RESERVED_KEYS = ("ts", "lvl", "msg", "component")


def redact(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``data`` with every sensitive value masked."""

    masked: Dict[str, Any] = {}
    for key, value in data.items():
        if key in SENSITIVE_KEYS:
            value = REDACTED
        elif isinstance(value, Mapping):
            value = redact(value)
        masked[key] = value
    return masked


@dataclass(frozen=True)
class JsonLogger:
    """Write redacted single-line JSON audit records.

    Attributes:
      stream: Destination, ``stderr`` unless given.
      component: Subsystem tag written into every record.
      context: Fields merged into every record, typically ``run_id``.
    """

    stream: Any = field(default_factory=lambda: sys.stderr)
    component: str = "mailgate"
    context: Mapping[str, Any] = field(default_factory=dict)

    def bind(self, **fields: Any) -> "JsonLogger":
        """Return a logger whose records also carry ``fields``."""

        return replace(self, context={**self.context, **fields})

    def log(self, level: str, message: str, **fields: Any) -> None:
        record: Dict[str, Any] = redact({**self.context, **fields})
        for key in RESERVED_KEYS:
            record.pop(key, None)
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "lvl": level.upper(),
            "msg": message,
            "component": self.component,
            **record,
        }
        self.stream.write(json.dumps(record, separators=(",", ":"), default=str) + "\n")
        self.stream.flush()

    def info(self, message: str, **fields: Any) -> None:
        self.log("INFO", message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self.log("WARN", message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self.log("ERROR", message, **fields)


def get_logger(component: str, stream: Any = None, **context: Any) -> JsonLogger:
    """Build a :class:`JsonLogger` for ``component`` with ``context`` bound.

    Args:
      component: Logical subsystem name to include in records.
      stream: Optional destination; defaults to ``stderr`` so audit lines never
        mix with operator-facing output on ``stdout``.
      context: Fields attached to every record, such as ``run_id``.
    """

    if stream is None:
        return JsonLogger(component=component, context=context)
    return JsonLogger(stream=stream, component=component, context=context)
