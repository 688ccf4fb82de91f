"""Resolve the gate configuration from flags, environment, and YAML.

What:
  Build the single :class:`GateConfig` value a run uses.

Why:
  Resolving every source once, validating the result, and handing out a
  frozen model keeps configuration out of the state machine, which only ever
  sees one immutable value per run.

How:
  Read the optional YAML file named by ``MAILGATE_CONFIG_PATH`` with
  ``yaml.safe_load`` and validate it through :class:`FileSettings`. Overlay the
  environment (``INIT_BASE_URL``, ``INIT_TIMEOUT_S``, ``JWT_SECRET``) and the
  CLI flags, then validate the merged payload as :class:`GateConfig`.

Interfaces:
  :func:`load_gate_config`, :func:`load_file_settings`.

Invariants:
  - Precedence is environment over file over defaults.
  - The secret only ever comes from the environment.
  - Validation and parse failures raise :class:`ConfigError` with path context.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .schema import FileSettings, GateConfig


CONFIG_PATH_ENV = "MAILGATE_CONFIG_PATH"
SECRET_ENV = "JWT_SECRET"
BASE_URL_ENV = "INIT_BASE_URL"
TIMEOUT_ENV = "INIT_TIMEOUT_S"


def load_file_settings(path: Path) -> FileSettings:
    """Parse and validate the YAML settings file at ``path``.

    Args:
      path: Location of the YAML document.

    Returns:
      Validated settings; an empty file yields defaults.

    Raises:
      ConfigError: If the file cannot be read, parsed, or validated.
    """

    try:
        text = path.expanduser().read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ConfigError(f"{path} must contain a mapping")
    try:
        return FileSettings.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"invalid settings in {path}: {exc}") from exc


def load_gate_config(
    *,
    force: bool = False,
    skip_confirm: bool = False,
    environ: Optional[Mapping[str, str]] = None,
    config_path: Optional[Path] = None,
) -> GateConfig:
    """Resolve the frozen configuration for one run.

    What:
      Merge defaults, the optional YAML file, the environment, and the CLI
      flags into a :class:`GateConfig`.

    Why:
      Constructing the value once, at the CLI boundary, keeps the gate a pure
      function of its parameters and lets tests pass explicit environments.

    How:
      Use ``config_path`` or ``MAILGATE_CONFIG_PATH`` to locate the file, then
      overlay non-empty environment values. ``INIT_TIMEOUT_S`` is parsed as a
      float by pydantic.

    Args:
      force: Value of the ``--force`` flag.
      skip_confirm: Value of the ``--yes`` flag.
      environ: Environment mapping; defaults to :data:`os.environ`.
      config_path: Explicit YAML path overriding ``MAILGATE_CONFIG_PATH``.

    Returns:
      The validated, frozen configuration. An empty secret is allowed here; the
      gate turns it into a ``MISSING_SECRET`` abort.

    Raises:
      ConfigError: If any source is malformed.
    """

    env = os.environ if environ is None else environ
    payload: dict[str, Any] = {"force": force, "skip_confirm": skip_confirm}

    if config_path is None and env.get(CONFIG_PATH_ENV):
        config_path = Path(env[CONFIG_PATH_ENV])
    if config_path is not None:
        settings = load_file_settings(config_path)
        payload.update(settings.model_dump(exclude_none=True))

    if env.get(BASE_URL_ENV):
        payload["base_url"] = env[BASE_URL_ENV]
    if env.get(TIMEOUT_ENV):
        payload["timeout_s"] = env[TIMEOUT_ENV]
    payload["secret"] = env.get(SECRET_ENV, "")

    try:
        return GateConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"invalid gate configuration: {exc}") from exc
