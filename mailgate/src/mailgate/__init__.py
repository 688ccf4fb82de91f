"""MailGate: guarded one-time initialization for Cloud Mail backends.

What:
  Package the initialization gate, its HTTP adapter, the credential generator
  used for the default account, and a reference backend.

Interfaces:
  ``__version__``; see :mod:`mailgate.cli` for the entry points.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
