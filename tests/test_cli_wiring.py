"""CLI wiring tests ensuring the Typer commands integrate with the gate.

What:
  Validate flags, environment handling, confirmation input, rendered messages,
  and exit codes of ``mailgate-init``, plus the credentials and server helpers.

Why:
  Operators and scripts only see the CLI; regressions in flag parsing or exit
  codes would turn a declined run into a failure or hide a rejected one.

How:
  Use :class:`typer.testing.CliRunner` with the HTTP adapter class replaced by
  a :class:`unittest.mock.MagicMock` factory.
"""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from mailgate import cli
from mailgate.api.client import InitializationState, InitOutcome, OutcomeKind
from mailgate.credentials import EntropySource, GeneratedCredential


runner = CliRunner()


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Replace :class:`InitApiClient` in the CLI with a mock factory."""

    client = MagicMock()
    client.__enter__.return_value = client
    client.probe_status.return_value = InitializationState.UNINITIALIZED
    client.execute.return_value = InitOutcome(OutcomeKind.SUCCESS, "success", 200)
    factory = MagicMock()
    factory.from_config.return_value = client
    monkeypatch.setattr("mailgate.cli.InitApiClient", factory)
    return client


@pytest.mark.parametrize("flag", ["--help", "-h"])
def test_help_has_no_side_effects(client: MagicMock, flag: str) -> None:
    result = runner.invoke(cli.app, [flag], env={"JWT_SECRET": "s1"})

    assert result.exit_code == 0
    assert "--force" in result.output
    assert "--yes" in result.output
    client.probe_status.assert_not_called()


def test_missing_secret_exits_one(client: MagicMock) -> None:
    result = runner.invoke(cli.app, ["--yes"])

    assert result.exit_code == 1
    assert "no JWT secret provided" in result.output
    client.probe_status.assert_not_called()
    client.execute.assert_not_called()


def test_yes_skips_prompt_and_succeeds(client: MagicMock) -> None:
    result = runner.invoke(cli.app, ["--yes"], env={"JWT_SECRET": "s1"})

    assert result.exit_code == 0
    assert "Initialization complete: success" in result.output
    assert "Continue?" not in result.output
    client.execute.assert_called_once_with("s1", legacy=False)


def test_interactive_yes_proceeds(client: MagicMock) -> None:
    result = runner.invoke(cli.app, [], env={"JWT_SECRET": "s1"}, input="YES\n")

    assert result.exit_code == 0
    assert "Continue?" in result.output
    client.execute.assert_called_once()


def test_interactive_no_cancels(client: MagicMock) -> None:
    result = runner.invoke(cli.app, [], env={"JWT_SECRET": "s1"}, input="no\n")

    assert result.exit_code == 0
    assert "Operation cancelled" in result.output
    client.execute.assert_not_called()


def test_closed_input_cancels(client: MagicMock) -> None:
    result = runner.invoke(cli.app, [], env={"JWT_SECRET": "s1"}, input="")

    assert result.exit_code == 0
    client.execute.assert_not_called()


def test_already_initialized_exits_zero(client: MagicMock) -> None:
    client.probe_status.return_value = InitializationState.INITIALIZED

    result = runner.invoke(cli.app, ["--yes"], env={"JWT_SECRET": "s1"})

    assert result.exit_code == 0
    assert "already initialized" in result.output
    client.execute.assert_not_called()


def test_force_reinitializes_with_warning(client: MagicMock) -> None:
    client.probe_status.return_value = InitializationState.INITIALIZED

    result = runner.invoke(cli.app, ["--force", "--yes"], env={"JWT_SECRET": "s1"})

    assert result.exit_code == 0
    assert "Re-initializing may damage existing data" in result.output
    client.execute.assert_called_once()


def test_rejection_exits_one_with_body(client: MagicMock) -> None:
    client.execute.return_value = InitOutcome(OutcomeKind.PROTOCOL_REJECTED, "Invalid secret", 401)

    result = runner.invoke(cli.app, ["--yes"], env={"JWT_SECRET": "s1"})

    assert result.exit_code == 1
    assert "Initialization failed: Invalid secret" in result.output


@pytest.mark.parametrize("timeout", ["never", "inf", "1e20"])
def test_invalid_timeout_exits_one(client: MagicMock, timeout: str) -> None:
    result = runner.invoke(cli.app, ["--yes"], env={"JWT_SECRET": "s1", "INIT_TIMEOUT_S": timeout})

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
    client.probe_status.assert_not_called()


def test_credentials_command_reports_source(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "mailgate.cli.generate_password",
        lambda length, rng_mode: GeneratedCredential("Abc1234567", EntropySource.STRONG),
    )

    result = runner.invoke(cli.credentials_app, ["--email-length", "12"])

    assert result.exit_code == 0
    assert "password:   Abc1234567" in result.output
    assert "entropy source: strong" in result.output
    name_line = next(line for line in result.output.splitlines() if line.startswith("email name:"))
    assert len(name_line.split(": ", 1)[1]) == 12


def test_credentials_command_rejects_impossible_length() -> None:
    result = runner.invoke(cli.credentials_app, ["--password-length", "2"])

    assert result.exit_code == 1


def test_server_requires_secret() -> None:
    result = runner.invoke(cli.server_app, [])

    assert result.exit_code == 1
    assert "JWT_SECRET must be set" in result.output


def test_audit_flag_writes_json_lines(client: MagicMock) -> None:
    result = runner.invoke(cli.app, ["--yes", "--audit"], env={"JWT_SECRET": "s1"})

    assert result.exit_code == 0
    assert '"msg":"gate_transition"' in result.output
    assert '"msg":"execute_finished"' in result.output
    assert '"run_id":' in result.output
