"""MailGate command-line interface for the guarded initialization flow.

What:
  Provide the Typer entry points operators use to initialize a Cloud Mail
  backend (``mailgate-init``), print freshly generated default credentials
  (``mailgate-credentials``), and run the reference backend locally
  (``mailgate-server``).

Why:
  Initialization is destructive and non-idempotent. The operator-facing tool
  must check the secret and the backend state before asking for confirmation,
  surface the backend's answer verbatim, and return exit codes that shell
  scripts can rely on.

How:
  Resolve a frozen :class:`GateConfig` once from flags and environment, open an
  :class:`InitApiClient`, and delegate to :func:`run_initialization`. The
  confirmation prompt is a ``typer.prompt`` wrapper injected into the gate;
  an interrupt at the prompt counts as end of input, hence a decline. Output is
  coloured with ``typer.secho``.

Interfaces:
  ``app``, ``credentials_app``, ``server_app``, ``main``,
  ``credentials_main``, ``server_main``.

Invariants & Safety:
  - Exit codes: ``0`` success, already initialized, declined, help; ``1``
    missing secret, connectivity failure, backend rejection, bad config.
  - ``--help``/``-h`` never touches the network.
  - No exception escapes the command; unexpected failures are logged with
    ``LOGGER.exception`` and exit ``1``.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

import typer

from ._wiring import EXIT_FAILURE, run_initialization
from .api.client import InitApiClient
from .config.loader import SECRET_ENV, load_gate_config
from .credentials import (
    EMAIL_NAME_LENGTH,
    PASSWORD_LENGTH,
    EntropySource,
    generate_email_name,
    generate_password,
)
from .errors import ConfigError, EntropyUnavailable, InvalidSpec
from .utils.ids import new_run_id
from .utils.logging import get_logger


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

app = typer.Typer(
    help="Cloud Mail safe initialization tool",
    add_completion=False,
    context_settings=CONTEXT_SETTINGS,
)
credentials_app = typer.Typer(
    help="Generate default account credentials",
    add_completion=False,
    context_settings=CONTEXT_SETTINGS,
)
server_app = typer.Typer(
    help="Run the reference initialization backend",
    add_completion=False,
    context_settings=CONTEXT_SETTINGS,
)

LOGGER = logging.getLogger("mailgate.cli")

COLORS = {
    "error": typer.colors.RED,
    "warning": typer.colors.YELLOW,
    "success": typer.colors.GREEN,
    "info": typer.colors.BLUE,
}


def _echo(level: str, message: str) -> None:
    typer.secho(message, fg=COLORS.get(level), err=level == "error")


def _ask(prompt: str) -> str:
    """Read one line of confirmation input.

    Raises:
      EOFError: When input is closed or the operator interrupts the prompt.
    """

    try:
        return typer.prompt(prompt, default="", show_default=False)
    except typer.Abort as exc:
        raise EOFError("confirmation aborted") from exc


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        help="Re-initialize even if the backend is already initialized",
    ),
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt"),
    audit: bool = typer.Option(
        False,
        "--audit",
        help="Write JSON audit lines for every gate transition to stderr",
    ),
    legacy_get: bool = typer.Option(
        False,
        "--legacy-get",
        hidden=True,
        help="Use the deprecated GET /init/{secret} endpoint (exposes the secret in URLs)",
    ),
) -> None:
    """Initialize the backend after checking its state and asking for confirmation.

    What:
      Probe ``/init/status``, decide whether initialization may run, ask the
      operator, then ``POST /init``.

    Why:
      Operators run this once per deployment; the checks stop accidental
      re-initialization and never prompt for an action that cannot succeed.

    How:
      Environment: ``JWT_SECRET`` (required), ``INIT_BASE_URL`` (default
      ``http://127.0.0.1:8787/api``), ``INIT_TIMEOUT_S`` (default ``10``),
      ``MAILGATE_CONFIG_PATH`` (optional YAML with ``base_url``/``timeout_s``).
    """

    _echo("info", "Cloud Mail safe initialization tool")
    _echo("info", "===================================")

    try:
        config = load_gate_config(force=force, skip_confirm=yes)
    except ConfigError as exc:
        _echo("error", f"Invalid configuration: {exc}")
        raise typer.Exit(code=EXIT_FAILURE) from exc

    run_id = new_run_id()
    audit_logger = get_logger("mailgate.cli", run_id=run_id) if audit else None
    if legacy_get:
        _echo("warning", "Using the deprecated GET /init/{secret} endpoint")
    if config.has_secret:
        _echo("warning", "Checking initialization status...")

    try:
        with InitApiClient.from_config(config) as client:
            report = run_initialization(
                config,
                client,
                _ask,
                notify=_echo,
                audit=audit_logger,
                run_id=run_id,
                legacy=legacy_get,
            )
    except Exception as exc:  # pragma: no cover - last-resort guard
        LOGGER.exception("init_failed run_id=%s error=%s", run_id, exc)
        _echo("error", f"Unhandled error: {exc}")
        raise typer.Exit(code=EXIT_FAILURE) from exc

    for level, message in report.messages:
        _echo(level, message)
    raise typer.Exit(code=report.exit_code)


@credentials_app.command()
def credentials(
    email_length: int = typer.Option(EMAIL_NAME_LENGTH, help="Length of the email local-part"),
    password_length: int = typer.Option(PASSWORD_LENGTH, help="Length of the password"),
    strong_only: bool = typer.Option(
        False,
        "--strong-only",
        help="Fail instead of falling back to a non-cryptographic source",
    ),
) -> None:
    """Print a random email name and password for the default account."""

    mode = "strong" if strong_only else "auto"
    try:
        email_name = generate_email_name(email_length, rng_mode=mode)
        password = generate_password(password_length, rng_mode=mode)
    except (InvalidSpec, EntropyUnavailable) as exc:
        _echo("error", str(exc))
        raise typer.Exit(code=EXIT_FAILURE) from exc

    typer.echo(f"email name: {email_name.value}")
    typer.echo(f"password:   {password.value}")
    level = "success" if password.source is EntropySource.STRONG else "warning"
    _echo(level, f"entropy source: {password.source.value}")


@server_app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    port: int = typer.Option(8787, help="Port to listen on"),
    domain: str = typer.Option("example.com", help="Mail domain of the default account"),
    url_prefix: Optional[str] = typer.Option("/api", help="Prefix for the API routes"),
) -> None:
    """Serve the initialization endpoints with an in-memory store."""

    from .server import InitService, create_app

    secret = os.environ.get(SECRET_ENV, "")
    if not secret:
        _echo("error", f"{SECRET_ENV} must be set to run the backend")
        raise typer.Exit(code=EXIT_FAILURE)
    create_app(InitService(secret, domain=domain), url_prefix=url_prefix or "").run(
        host=host, port=port
    )


def main() -> None:
    """Execute the ``mailgate-init`` entry point."""

    logging.basicConfig(level=os.environ.get("MAILGATE_LOG_LEVEL", "WARNING").upper())
    app()


def credentials_main() -> None:
    credentials_app()


def server_main() -> None:
    logging.basicConfig(level=os.environ.get("MAILGATE_LOG_LEVEL", "INFO").upper())
    server_app()


if __name__ == "__main__":  # pragma: no cover
    main()
