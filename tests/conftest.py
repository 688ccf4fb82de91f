"""Pytest configuration shared by every MailGate suite.

What:
  Put the in-repo source tree on ``sys.path`` and isolate the environment
  variables the gate reads.

Why:
  Tests must exercise the working tree rather than an installed wheel, and a
  ``JWT_SECRET`` exported in the developer's shell must never leak into a test
  that expects it to be missing.

How:
  Prepend ``mailgate/src`` at import time and clear the gate variables with an
  autouse :class:`pytest.MonkeyPatch` fixture.
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "mailgate" / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

import pytest

GATE_ENV_VARS = ("JWT_SECRET", "INIT_BASE_URL", "INIT_TIMEOUT_S", "MAILGATE_CONFIG_PATH")


@pytest.fixture(autouse=True)
def clean_gate_env(monkeypatch: pytest.MonkeyPatch):
    """Remove gate configuration variables for the duration of each test."""

    for name in GATE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
