"""Helper utilities bridging the CLI with the gate and the HTTP adapter.

What:
  Run one complete initialization (gate, then optional execute) and map the
  terminal state to operator messages and an exit code.

Why:
  Keeping the orchestration out of the Typer command makes it testable without
  a terminal and guarantees that every terminal state yields exactly one
  primary message and one exit code.

How:
  :func:`run_initialization` builds an :class:`InitGate` around the client's
  probe, runs it, calls :meth:`InitApiClient.execute` only on ``PROCEEDING``,
  and hands both results to :func:`render_terminal`.

Interfaces:
  :func:`run_initialization`, :func:`render_terminal`, :class:`RunReport`,
  :data:`EXIT_OK`, :data:`EXIT_FAILURE`.

Invariants & Safety:
  - ``execute`` is called at most once per run and never on an abort.
  - Exit code ``0``: success, already initialized, declined. ``1``: missing
    secret, connectivity failure, backend rejection.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable, List, Optional, Tuple

from .api.client import InitApiClient, InitOutcome, OutcomeKind
from .config.schema import GateConfig
from .core.gate import AbortReason, GateResult, InitGate
from .utils.logging import JsonLogger


LOGGER = logging.getLogger("mailgate.wiring")

EXIT_OK = 0
EXIT_FAILURE = 1

Message = Tuple[str, str]


@dataclass
class RunReport:
    """Everything the CLI needs to render a finished run."""

    gate: GateResult
    outcome: Optional[InitOutcome] = None
    exit_code: int = EXIT_OK
    messages: List[Message] = field(default_factory=list)


def render_terminal(
    gate: GateResult,
    outcome: Optional[InitOutcome],
    config: GateConfig,
) -> Tuple[int, List[Message]]:
    """Map a terminal gate state and optional outcome to messages and exit code.

    What:
      Produce ``(exit_code, [(level, text), ...])`` where the first entry is
      the primary message and the rest are hints.

    Why:
      A single table of terminal states keeps the CLI output and the exit code
      policy consistent and reviewable.

    How:
      Abort reasons are handled first; a proceeding gate must come with an
      outcome, whose kind selects the message.

    Args:
      gate: Terminal gate result.
      outcome: Execute outcome when the gate proceeded.
      config: Run configuration, used for hints.

    Returns:
      Exit code and ordered ``(level, text)`` messages.
    """

    reason = gate.reason
    if reason is AbortReason.MISSING_SECRET:
        return EXIT_FAILURE, [
            ("error", "Error: no JWT secret provided"),
            ("warning", "Set the JWT_SECRET environment variable or configure it in wrangler.toml"),
            ("warning", "Example: JWT_SECRET=your-secret-key mailgate-init"),
        ]
    if reason is AbortReason.CONNECTIVITY_ERROR:
        return EXIT_FAILURE, [
            ("error", f"Cannot check initialization status: {gate.error}"),
            ("warning", f"Make sure the backend is running at {config.base_url}"),
        ]
    if reason is AbortReason.ALREADY_INITIALIZED:
        return EXIT_OK, [
            ("success", "The system is already initialized"),
            ("warning", "Use --force to re-initialize anyway"),
        ]
    if reason is AbortReason.USER_DECLINED:
        return EXIT_OK, [("warning", "Operation cancelled")]

    if outcome is None:
        raise ValueError("a proceeding gate requires an execute outcome")
    if outcome.kind is OutcomeKind.SUCCESS:
        return EXIT_OK, [
            ("success", f"Initialization complete: {outcome.message}"),
            ("info", "Next steps:"),
            ("info", "  - change the default administrator password now"),
            ("info", "  - review the system settings"),
            ("info", "  - configure the mail sending service"),
        ]
    if outcome.kind is OutcomeKind.PROTOCOL_REJECTED:
        return EXIT_FAILURE, [("error", f"Initialization failed: {outcome.message}")]
    return EXIT_FAILURE, [("error", f"Error during initialization: {outcome.message}")]


def run_initialization(
    config: GateConfig,
    client: InitApiClient,
    ask: Callable[[str], str],
    *,
    notify: Optional[Callable[[str, str], None]] = None,
    audit: Optional[JsonLogger] = None,
    run_id: Optional[str] = None,
    legacy: bool = False,
) -> RunReport:
    """Run the gate and, when it proceeds, the initialization call.

    Args:
      config: Frozen run configuration.
      client: HTTP adapter bound to ``config.base_url``.
      ask: Confirmation callable handed to the gate.
      notify: Optional ``(level, message)`` sink for in-flight messages.
      audit: Optional JSON audit logger, already bound to ``run_id``.
      run_id: Identifier used in the closing log line.
      legacy: Use the deprecated secret-in-path endpoint.

    Returns:
      The gate result, the outcome (if executed), the exit code, and messages.
    """

    gate = InitGate(client.probe_status, ask, notify=notify, audit=audit)
    result = gate.run(config)

    outcome: Optional[InitOutcome] = None
    if result.proceeding:
        if notify is not None:
            notify("success", "Starting initialization...")
        outcome = client.execute(config.secret, legacy=legacy)
        if audit is not None:
            audit.info(
                "execute_finished",
                outcome=outcome.kind.value,
                status_code=outcome.status_code,
            )

    exit_code, messages = render_terminal(result, outcome, config)
    LOGGER.info(
        "run_finished run_id=%s state=%s reason=%s exit_code=%s",
        run_id,
        result.state.value,
        result.reason.value if result.reason else None,
        exit_code,
    )
    return RunReport(gate=result, outcome=outcome, exit_code=exit_code, messages=messages)

