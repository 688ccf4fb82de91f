"""Unit tests for :mod:`mailgate.utils.logging` and run identifiers."""
from __future__ import annotations

import io
import json

from mailgate.utils import get_logger, new_run_id
from mailgate.utils.logging import REDACTED, JsonLogger


def test_json_logger_redacts_nested_secrets() -> None:
    stream = io.StringIO()
    logger = JsonLogger(stream=stream, component="mailgate.test")

    logger.warning("init", secret="s1", extra={"password": "p", "kept": 1}, status=200)

    payload = json.loads(stream.getvalue())
    assert payload["lvl"] == "WARN"
    assert payload["component"] == "mailgate.test"
    assert payload["secret"] == REDACTED
    assert payload["extra"] == {"password": REDACTED, "kept": 1}
    assert payload["status"] == 200
    assert "s1" not in stream.getvalue()


def test_get_logger_binds_stream() -> None:
    stream = io.StringIO()

    get_logger("gate", stream).error("probe_failed")

    assert json.loads(stream.getvalue())["lvl"] == "ERROR"


def test_bound_context_reaches_every_record() -> None:
    stream = io.StringIO()
    base = get_logger("gate", stream, run_id="run-7")
    bound = base.bind(token="t0", attempt=2)

    base.info("probed")
    bound.info("decided", attempt=3)

    first, second = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert first["run_id"] == "run-7" and "attempt" not in first
    assert second["run_id"] == "run-7"
    assert second["attempt"] == 3
    assert second["token"] == REDACTED
    assert "t0" not in stream.getvalue()


def test_context_cannot_override_reserved_fields() -> None:
    stream = io.StringIO()

    get_logger("gate", stream, msg="forged", lvl="DEBUG").info("probed", component="x")

    payload = json.loads(stream.getvalue())
    assert payload["msg"] == "probed"
    assert payload["lvl"] == "INFO"
    assert payload["component"] == "gate"


def test_run_ids_are_unique() -> None:
    first, second = new_run_id(), new_run_id()

    assert first != second
    assert "#" in first
