"""Aggregated exports for the initialization gate.

What:
  Expose the gate state machine and its pure decision helpers.

Interfaces:
  ``InitGate``, ``GateResult``, ``GateState``, ``AbortReason``,
  ``DecisionKind``, ``InitDecision``, ``decide``, ``confirm``.
"""

from .gate import (
    AbortReason,
    DecisionKind,
    GateResult,
    GateState,
    InitDecision,
    InitGate,
    confirm,
    decide,
)

__all__ = [
    "AbortReason",
    "DecisionKind",
    "GateResult",
    "GateState",
    "InitDecision",
    "InitGate",
    "confirm",
    "decide",
]
