"""Backend-side initialization service with single-flight execution.

What:
  Verify initialization requests, bootstrap the schema marker and default data,
  and report whether the backend is initialized.

Why:
  Two near-simultaneous initialization calls must not both insert default data.
  The service enforces that with a non-blocking lock: the first caller runs,
  any concurrent caller is rejected with ``409`` instead of waiting and then
  running a second time.

How:
  - :class:`InMemoryInitStore` stands in for the persistence layer and guards
    its own fields with a lock.
  - :class:`InitService` checks the server secret, the request secret
    (``hmac.compare_digest``), and the explicit confirmation, then acquires the
    single-flight lock and applies the bootstrap steps.
  - The default account is created once, with credentials from
    :mod:`mailgate.credentials` using the strong entropy source only.

Interfaces:
  :class:`InitService`, :class:`InitResult`, :class:`InMemoryInitStore`,
  :class:`DefaultAccount`.

Invariants & Safety:
  - Default data is inserted at most once per store.
  - The plaintext password is returned to the caller once and never stored or
    logged; the store keeps a PBKDF2 hash.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import hashlib
import hmac
import logging
import secrets
import threading
from typing import Dict, List, Optional

from ..credentials import generate_email_name, generate_password


LOGGER = logging.getLogger("mailgate.server.init_service")

DEFAULT_ROLES = ("admin", "user")
DEFAULT_SETTINGS = {"register": "open", "send": "enabled", "title": "Cloud Mail"}
SCHEMA_VERSION = 1
PBKDF2_ITERATIONS = 200_000


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    salt = salt if salt is not None else secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt.hex()}${digest.hex()}"


@dataclass(frozen=True)
class DefaultAccount:
    email: str
    password_hash: str = field(repr=False)
    role: str = "admin"


@dataclass(frozen=True)
class InitResult:
    """HTTP-shaped result of an initialization attempt."""

    status: int
    message: str

    @property
    def ok(self) -> bool:
        return self.status == 200


class InMemoryInitStore:
    """Thread-safe in-memory persistence for the bootstrap state."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.schema_version: Optional[int] = None
        self.initialized = False
        self.roles: List[str] = []
        self.settings: Dict[str, str] = {}
        self.accounts: Dict[str, DefaultAccount] = {}
        self.default_data_inserts = 0

    def is_initialized(self) -> bool:
        with self._lock:
            return self.initialized

    def ensure_schema(self) -> None:
        with self._lock:
            self.schema_version = SCHEMA_VERSION

    def has_default_data(self) -> bool:
        with self._lock:
            return bool(self.roles)

    def insert_defaults(self, roles: List[str], settings: Dict[str, str], account: DefaultAccount) -> None:
        with self._lock:
            self.roles.extend(roles)
            self.settings.update(settings)
            self.accounts[account.email] = account
            self.default_data_inserts += 1

    def mark_initialized(self) -> None:
        with self._lock:
            self.initialized = True


class InitService:
    """Apply the one-time bootstrap under a single-flight lock.

    What:
      Expose :meth:`is_initialized` for the status endpoint and
      :meth:`initialize` for both the POST and the deprecated GET endpoint.

    Why:
      The client only reports the outcome of one call; correctness under
      concurrent callers has to be enforced here.

    How:
      Reject bad requests before touching the lock, then acquire it without
      blocking. A caller that loses the race gets ``409`` and can re-probe.

    Args:
      secret: JWT secret configured on the backend; empty disables init.
      store: Persistence layer, defaults to :class:`InMemoryInitStore`.
      domain: Mail domain of the default account.
    """

    def __init__(
        self,
        secret: str,
        store: Optional[InMemoryInitStore] = None,
        *,
        domain: str = "example.com",
    ) -> None:
        self._secret = secret
        self.store = store if store is not None else InMemoryInitStore()
        self.domain = domain
        self._flight = threading.Lock()

    def is_initialized(self) -> bool:
        return self.store.is_initialized()

    def initialize(self, secret: str, *, confirmed: bool) -> InitResult:
        if not self._secret:
            LOGGER.error("init_rejected reason=server_secret_missing")
            return InitResult(500, "JWT secret is not configured on the server")
        if not hmac.compare_digest(secret.encode("utf-8"), self._secret.encode("utf-8")):
            LOGGER.warning("init_rejected reason=invalid_secret")
            return InitResult(401, "Invalid secret")
        if not confirmed:
            LOGGER.warning("init_rejected reason=not_confirmed")
            return InitResult(400, "Initialization must be confirmed with confirmInit=true")
        if not self._flight.acquire(blocking=False):
            LOGGER.warning("init_rejected reason=in_flight")
            return InitResult(409, "Initialization already in progress")
        try:
            return self._apply()
        finally:
            self._flight.release()

    def _apply(self) -> InitResult:
        self.store.ensure_schema()
        if self.store.has_default_data():
            self.store.mark_initialized()
            LOGGER.info("init_completed defaults=preserved")
            return InitResult(200, "success (already initialized, defaults preserved)")

        email_name = generate_email_name(rng_mode="strong")
        password = generate_password(rng_mode="strong")
        account = DefaultAccount(
            email=f"{email_name.value}@{self.domain}",
            password_hash=hash_password(password.value),
        )
        self.store.insert_defaults(list(DEFAULT_ROLES), dict(DEFAULT_SETTINGS), account)
        self.store.mark_initialized()
        LOGGER.info("init_completed defaults=inserted account=%s", account.email)
        return InitResult(
            200,
            f"success\ndefault account: {account.email}\ndefault password: {password.value}",
        )
