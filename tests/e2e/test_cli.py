"""End-to-end tests running the CLI as operators do.

What:
  Launch ``python -m mailgate.cli`` in a subprocess and check exit codes and
  output for help, a missing secret, and an unreachable backend.

Why:
  These paths need no backend and prove the module entry point, environment
  handling, and exit-code policy work outside the test runner.

How:
  Build the command with a ``PYTHONPATH`` pointing at the in-repo source tree
  and a scrubbed environment.
"""

import os
import pathlib
import subprocess
import sys


PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[2]


def _run_cli(*args: str, **env_overrides: str) -> subprocess.CompletedProcess:
    cmd = [sys.executable, "-m", "mailgate.cli", *args]
    env = {
        key: value
        for key, value in os.environ.items()
        if key not in {"JWT_SECRET", "INIT_BASE_URL", "INIT_TIMEOUT_S", "MAILGATE_CONFIG_PATH"}
    }
    env["PYTHONPATH"] = f"{PROJECT_ROOT / 'mailgate' / 'src'}{os.pathsep}{env.get('PYTHONPATH', '')}"
    env.update(env_overrides)
    return subprocess.run(
        cmd, text=True, capture_output=True, cwd=PROJECT_ROOT, env=env, stdin=subprocess.DEVNULL
    )


def test_cli_help() -> None:
    result = _run_cli("--help")

    assert result.returncode == 0
    assert "--force" in result.stdout


def test_cli_missing_secret() -> None:
    result = _run_cli("--yes")

    assert result.returncode == 1
    assert "no JWT secret provided" in result.stderr


def test_cli_unreachable_backend() -> None:
    result = _run_cli(
        "--yes",
        JWT_SECRET="s1",
        INIT_BASE_URL="http://127.0.0.1:9/api",
        INIT_TIMEOUT_S="2",
    )

    assert result.returncode == 1
    assert "Cannot check initialization status" in result.stderr
