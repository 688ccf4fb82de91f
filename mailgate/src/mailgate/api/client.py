"""HTTP adapter for the backend initialization endpoints.

What:
  Probe the backend's initialization state and trigger initialization.

Why:
  Initialization inserts default data and is not idempotent by default. The
  adapter reports exactly what happened on the wire (success, backend
  rejection, or transport failure) and never retries on its own.

How:
  Wrap a :class:`requests.Session` bound to a base URL and a timeout.
  :meth:`InitApiClient.probe_status` raises :class:`ConnectivityError` for
  anything other than a well-formed ``{"initialized": bool}`` answer.
  :meth:`InitApiClient.execute` returns an :class:`InitOutcome` and keeps the
  deprecated secret-in-path variant behind an explicit ``legacy=True``.

Interfaces:
  :class:`InitApiClient`, :class:`InitOutcome`, :class:`OutcomeKind`,
  :class:`InitializationState`.

Invariants & Safety:
  - Every request carries ``timeout``.
  - The POST body is the default path; the secret never appears in a URL
    unless the caller opts into the legacy path.
  - Response bodies of rejected calls are surfaced verbatim.
"""
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
from urllib.parse import quote

import requests

from ..config.schema import DEFAULT_TIMEOUT_S
from ..errors import ConnectivityError


LOGGER = logging.getLogger("mailgate.api.client")


class InitializationState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    PROTOCOL_REJECTED = "protocol_rejected"
    CONNECTIVITY_ERROR = "connectivity_error"


@dataclass(frozen=True)
class InitOutcome:
    """Result of a single initialization call.

    Attributes:
      kind: What happened on the wire.
      message: Response body verbatim, or the transport failure text.
      status_code: HTTP status when a response was received.
    """

    kind: OutcomeKind
    message: str
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


class InitApiClient:
    """Client for ``/init/status`` and ``/init``.

    What:
      Issue the read-only status probe and the initialization call against the
      configured API root.

    Why:
      Isolating the wire protocol lets the gate be tested with a fake probe and
      lets the backend evolve its paths in one place.

    How:
      Store the base URL without trailing slash, the timeout, and a session
      (injectable for tests). Requests use ``session.get``/``session.post``
      with an explicit ``timeout``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        session: Optional[Any] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._session = session if session is not None else requests.Session()

    @classmethod
    def from_config(cls, config: Any, session: Optional[Any] = None) -> "InitApiClient":
        return cls(config.base_url, timeout_s=config.timeout_s, session=session)

    def close(self) -> None:
        close = getattr(self._session, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "InitApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def probe_status(self) -> InitializationState:
        """Return the backend's initialization state.

        What:
          ``GET {base}/init/status`` and parse ``{"initialized": bool}``.

        Why:
          The gate needs a trustworthy answer before it asks the operator
          anything. A valid "not initialized" must stay distinct from "could
          not tell".

        How:
          Any transport error, non-200 status, undecodable JSON, or missing or
          non-boolean ``initialized`` field raises :class:`ConnectivityError`.

        Returns:
          :attr:`InitializationState.INITIALIZED` or
          :attr:`InitializationState.UNINITIALIZED`.

        Raises:
          ConnectivityError: When no valid answer was obtained.
        """

        url = f"{self.base_url}/init/status"
        try:
            response = self._session.get(url, timeout=self.timeout_s)
        except requests.RequestException as exc:
            raise ConnectivityError(f"status probe failed: {exc}", cause=exc) from exc
        if response.status_code != 200:
            raise ConnectivityError(
                f"status probe returned HTTP {response.status_code}: {response.text}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ConnectivityError(f"status probe returned invalid JSON: {exc}", cause=exc) from exc
        initialized = payload.get("initialized") if isinstance(payload, dict) else None
        if not isinstance(initialized, bool):
            raise ConnectivityError("status probe response lacks a boolean 'initialized' field")
        LOGGER.info("probe_completed initialized=%s", initialized)
        if initialized:
            return InitializationState.INITIALIZED
        return InitializationState.UNINITIALIZED

    def execute(self, secret: str, *, legacy: bool = False) -> InitOutcome:
        """Trigger initialization and interpret the response.

        What:
          ``POST {base}/init`` with ``{"secret": ..., "confirmInit": true}``, or
          the deprecated ``GET {base}/init/{secret}`` when ``legacy`` is set.

        Why:
          The backend decides whether initialization succeeded; the client only
          reports the explicit outcome of this single call and never infers
          partial success.

        How:
          2xx becomes :attr:`OutcomeKind.SUCCESS`, any other status becomes
          :attr:`OutcomeKind.PROTOCOL_REJECTED` with the body untouched, and a
          transport failure becomes :attr:`OutcomeKind.CONNECTIVITY_ERROR`.

        Args:
          secret: JWT secret configured on the backend.
          legacy: Use the secret-in-path endpoint. Exposes the secret in URLs
            and access logs; kept only for old deployments.

        Returns:
          The outcome of the call.
        """

        try:
            if legacy:
                warnings.warn(
                    "GET /init/{secret} is deprecated and leaks the secret into URLs; "
                    "use POST /init instead",
                    DeprecationWarning,
                    stacklevel=2,
                )
                LOGGER.warning("execute_legacy_path base_url=%s", self.base_url)
                url = f"{self.base_url}/init/{quote(secret, safe='')}"
                response = self._session.get(url, timeout=self.timeout_s)
            else:
                url = f"{self.base_url}/init"
                response = self._session.post(
                    url,
                    json={"secret": secret, "confirmInit": True},
                    timeout=self.timeout_s,
                )
        except requests.RequestException as exc:
            LOGGER.error("execute_transport_failed error=%s", exc)
            return InitOutcome(OutcomeKind.CONNECTIVITY_ERROR, str(exc))

        body = response.text
        if 200 <= response.status_code < 300:
            LOGGER.info("execute_succeeded status=%s", response.status_code)
            return InitOutcome(OutcomeKind.SUCCESS, body, response.status_code)
        LOGGER.error("execute_rejected status=%s", response.status_code)
        return InitOutcome(OutcomeKind.PROTOCOL_REJECTED, body, response.status_code)
