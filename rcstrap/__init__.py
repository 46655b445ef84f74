"""rcstrap: binary bootstrapper and shell rc wiring.

Core design goals:
- Ordered acquisition fallbacks (reuse, PATH, download, build)
- Every candidate binary validated against the release version
- Idempotent, append-only edits to user rc files
- Centralized logging
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
