"""MailGate configuration package.

What:
  Provide the import surface for the frozen run configuration and its loader.

Why:
  Callers must go through :func:`load_gate_config` so every value is validated
  before the gate sees it.

Interfaces:
  - load_gate_config / load_file_settings: Resolve flags, environment and YAML.
  - GateConfig / FileSettings: Pydantic models.
"""

from .loader import load_file_settings, load_gate_config
from .schema import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_S, MAX_TIMEOUT_S, FileSettings, GateConfig

__all__ = [
    "load_gate_config",
    "load_file_settings",
    "GateConfig",
    "FileSettings",
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT_S",
    "MAX_TIMEOUT_S",
]
