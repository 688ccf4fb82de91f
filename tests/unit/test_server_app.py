"""Route tests for the reference backend.

What:
  Exercise the three initialization endpoints through Flask's test client.

Why:
  The client protocol depends on exact paths, status codes, and bodies, and the
  legacy path must warn on every single call.

How:
  Build the app with :func:`create_app` around a fresh :class:`InitService`
  and capture warnings with ``caplog``.
"""
from __future__ import annotations

import logging

import pytest

from mailgate.server import DEPRECATION_WARNING, InitService, create_app


@pytest.fixture
def service() -> InitService:
    return InitService("s1")


@pytest.fixture
def client(service: InitService):
    return create_app(service).test_client()


def test_status_reflects_initialization(client) -> None:
    assert client.get("/api/init/status").get_json() == {"initialized": False}

    response = client.post("/api/init", json={"secret": "s1", "confirmInit": True})

    assert response.status_code == 200
    assert response.get_data(as_text=True).startswith("success")
    assert client.get("/api/init/status").get_json() == {"initialized": True}


@pytest.mark.parametrize(
    "body, status",
    [
        ({"secret": "s1"}, 400),
        ({"secret": "s1", "confirmInit": "true"}, 400),
        ({"secret": "nope", "confirmInit": True}, 401),
        ({"secret": 42, "confirmInit": True}, 401),
    ],
)
def test_post_rejections(client, service: InitService, body: dict, status: int) -> None:
    response = client.post("/api/init", json=body)

    assert response.status_code == status
    assert response.mimetype == "text/plain"
    assert not service.is_initialized()


def test_post_without_json_body_is_rejected(client) -> None:
    response = client.post("/api/init", data="secret=s1", content_type="text/plain")

    assert response.status_code == 401


def test_legacy_get_warns_on_every_call(
    client, service: InitService, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING, logger="mailgate.server.app"):
        first = client.get("/api/init/s1")
        second = client.get("/api/init/s1")

    assert first.status_code == 200
    assert second.status_code == 200
    assert service.is_initialized()
    warnings = [record.getMessage() for record in caplog.records if record.name == "mailgate.server.app"]
    assert warnings == [DEPRECATION_WARNING, DEPRECATION_WARNING]


def test_legacy_get_with_wrong_secret(client) -> None:
    assert client.get("/api/init/wrong").status_code == 401


def test_custom_prefix(service: InitService) -> None:
    client = create_app(service, url_prefix="").test_client()

    assert client.get("/init/status").status_code == 200
