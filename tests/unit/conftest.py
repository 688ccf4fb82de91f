"""Pytest fixtures for unit tests requiring HTTP fakes.

What:
  Make ``tests/unit`` importable and expose a fresh :class:`FakeSession` plus a
  client bound to it.

Why:
  Adapter and wiring tests assert on the exact calls made; each test needs its
  own recorder.
"""

import sys
from pathlib import Path

import pytest

from mailgate.api.client import InitApiClient

UNIT_DIR = Path(__file__).resolve().parent
if str(UNIT_DIR) not in sys.path:
    sys.path.insert(0, str(UNIT_DIR))

from fakes import FakeSession


BASE_URL = "http://backend.test/api"


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def api_client(session: FakeSession) -> InitApiClient:
    """Return an :class:`InitApiClient` wired to the fake session."""

    return InitApiClient(BASE_URL, timeout_s=3.0, session=session)
