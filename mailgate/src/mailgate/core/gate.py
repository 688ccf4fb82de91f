"""State machine guarding the "run initialization" operation.

What:
  Combine the probed backend state, the ``--force`` override, and an operator
  confirmation into a terminal ``ABORTED`` or ``PROCEEDING`` result.

Why:
  Initialization inserts default data and may overwrite an existing setup. The
  operator must never be asked to confirm something that cannot succeed, and
  an already initialized backend must stay untouched unless the override is
  given explicitly.

How:
  - :func:`decide` is the pure ``(state, config) -> InitDecision`` step.
  - :func:`confirm` is the pure ``(decision, config, answer)`` step.
  - :class:`InitGate` drives ``START -> PROBED -> DECIDED -> terminal`` with an
    injected probe callable and an injected ``ask`` callable, records the
    visited states, and writes one audit line per transition.

Interfaces:
  :class:`InitGate`, :class:`GateResult`, :class:`InitDecision`,
  :class:`GateState`, :class:`AbortReason`, :class:`DecisionKind`,
  :func:`decide`, :func:`confirm`.

Invariants & Safety:
  - An empty secret aborts before the probe is called.
  - A probe failure aborts regardless of ``force`` and ``skip_confirm``.
  - ``ask`` is called at most once, and only for a proceeding decision.
  - The gate never performs the mutating call itself.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from ..api.client import InitializationState
from ..config.schema import GateConfig
from ..errors import ConnectivityError
from ..utils.logging import JsonLogger


LOGGER = logging.getLogger("mailgate.core.gate")

CONFIRM_LITERAL = "yes"
CONFIRM_PROMPT = "Continue? (yes/no)"
REINIT_WARNING = (
    "The backend is already initialized but --force was given. "
    "Re-initializing may damage existing data."
)
PLANNED_STEPS = (
    "create database tables",
    "insert default permissions and roles",
    "initialize system settings",
)
OVERWRITE_STEP = "overwrite the existing initialization state"


class GateState(str, Enum):
    START = "start"
    PROBED = "probed"
    DECIDED = "decided"
    ABORTED = "aborted"
    PROCEEDING = "proceeding"


class AbortReason(str, Enum):
    MISSING_SECRET = "missing_secret"
    CONNECTIVITY_ERROR = "connectivity_error"
    ALREADY_INITIALIZED = "already_initialized"
    USER_DECLINED = "user_declined"


class DecisionKind(str, Enum):
    ABORT = "abort"
    PROCEED_WITH_WARNING = "proceed_with_warning"
    PROCEED = "proceed"


@dataclass(frozen=True)
class InitDecision:
    kind: DecisionKind
    reason: Optional[AbortReason] = None

    @classmethod
    def abort(cls, reason: AbortReason) -> "InitDecision":
        return cls(DecisionKind.ABORT, reason)

    @property
    def proceeds(self) -> bool:
        return self.kind is not DecisionKind.ABORT


@dataclass
class GateResult:
    """Terminal result of one gate run.

    Attributes:
      state: :attr:`GateState.ABORTED` or :attr:`GateState.PROCEEDING`.
      reason: Abort reason when aborted.
      decision: Decision reached after probing, when the run got that far.
      initialization_state: Probed backend state, when the probe succeeded.
      error: Probe failure, when the run aborted on connectivity.
      trail: Every state visited, in order.
    """

    state: GateState
    reason: Optional[AbortReason] = None
    decision: Optional[InitDecision] = None
    initialization_state: Optional[InitializationState] = None
    error: Optional[ConnectivityError] = None
    trail: List[GateState] = field(default_factory=list)

    @property
    def proceeding(self) -> bool:
        return self.state is GateState.PROCEEDING

    @property
    def warned(self) -> bool:
        return self.decision is not None and self.decision.kind is DecisionKind.PROCEED_WITH_WARNING


def decide(state: InitializationState, config: GateConfig) -> InitDecision:
    """Map the probed state and the override flag to a decision."""

    if state is InitializationState.INITIALIZED:
        if not config.force:
            return InitDecision.abort(AbortReason.ALREADY_INITIALIZED)
        return InitDecision(DecisionKind.PROCEED_WITH_WARNING)
    return InitDecision(DecisionKind.PROCEED)


def is_confirmation(answer: Optional[str]) -> bool:
    return answer is not None and answer.lower() == CONFIRM_LITERAL


def confirm(
    decision: InitDecision,
    config: GateConfig,
    answer: Optional[str] = None,
) -> tuple[GateState, Optional[AbortReason]]:
    """Resolve a decision into a terminal state.

    What:
      Apply the confirmation rule to a decision.

    Why:
      Keeping this step pure lets tests enumerate answers without a terminal.

    How:
      Abort decisions stay aborted. With ``skip_confirm`` the decision passes
      through. Otherwise only the case-insensitive literal ``"yes"`` proceeds;
      ``None`` (no answer, end of input) and every other string decline.

    Args:
      decision: Output of :func:`decide`.
      config: Run configuration.
      answer: Operator input, ignored when ``skip_confirm`` is set.

    Returns:
      ``(terminal_state, abort_reason)``.
    """

    if not decision.proceeds:
        return GateState.ABORTED, decision.reason
    if config.skip_confirm or is_confirmation(answer):
        return GateState.PROCEEDING, None
    return GateState.ABORTED, AbortReason.USER_DECLINED


class InitGate:
    """Drive the initialization decision for one run.

    What:
      Execute the gate transitions against an injected probe and an injected
      confirmation callable.

    Why:
      Injecting the probe and the prompt keeps the state machine free of
      terminal and network I/O, so unit tests can drive it with call-count
      assertions.

    How:
      :meth:`run` checks the secret, probes, decides, optionally asks, and
      returns a :class:`GateResult`. ``notify(level, message)`` surfaces the
      re-initialization warning and the planned steps; ``audit`` receives JSON
      audit lines through a logger that already carries the run context.

    Args:
      probe: Zero-argument callable returning the backend state or raising
        :class:`ConnectivityError`.
      ask: Callable receiving a prompt and returning one line of input. It may
        raise :class:`EOFError` when input is closed.
      notify: Optional ``(level, message)`` sink for operator messages.
      audit: Optional :class:`JsonLogger`, bound to the run id by the caller.
    """

    def __init__(
        self,
        probe: Callable[[], InitializationState],
        ask: Callable[[str], str],
        *,
        notify: Optional[Callable[[str, str], None]] = None,
        audit: Optional[JsonLogger] = None,
    ) -> None:
        self._probe = probe
        self._ask = ask
        self._notify = notify or (lambda level, message: None)
        self._audit = audit

    def run(self, config: GateConfig) -> GateResult:
        result = GateResult(state=GateState.START, trail=[GateState.START])

        if not config.has_secret:
            return self._finish(result, GateState.ABORTED, AbortReason.MISSING_SECRET)

        try:
            probed = self._probe()
        except ConnectivityError as exc:
            result.error = exc
            LOGGER.error("probe_failed error=%s", exc)
            return self._finish(result, GateState.ABORTED, AbortReason.CONNECTIVITY_ERROR)
        result.initialization_state = probed
        self._advance(result, GateState.PROBED, initialized=probed.value)

        decision = decide(probed, config)
        result.decision = decision
        self._advance(result, GateState.DECIDED, decision=decision.kind.value, force=config.force)

        if decision.kind is DecisionKind.PROCEED_WITH_WARNING:
            self._notify("warning", REINIT_WARNING)

        answer: Optional[str] = None
        if decision.proceeds and not config.skip_confirm:
            answer = self._ask_once(decision)

        state, reason = confirm(decision, config, answer)
        return self._finish(result, state, reason)

    def _ask_once(self, decision: InitDecision) -> Optional[str]:
        steps = list(PLANNED_STEPS)
        if decision.kind is DecisionKind.PROCEED_WITH_WARNING:
            steps.append(OVERWRITE_STEP)
        self._notify("info", "About to:\n" + "\n".join(f"  - {step}" for step in steps))
        try:
            return self._ask(CONFIRM_PROMPT)
        except EOFError:
            LOGGER.info("confirmation_input_closed")
            return None

    def _advance(self, result: GateResult, state: GateState, **fields: object) -> None:
        result.state = state
        result.trail.append(state)
        if self._audit is not None:
            self._audit.info("gate_transition", state=state.value, **fields)

    def _finish(
        self,
        result: GateResult,
        state: GateState,
        reason: Optional[AbortReason],
    ) -> GateResult:
        result.reason = reason
        self._advance(result, state, reason=reason.value if reason else None)
        return result
