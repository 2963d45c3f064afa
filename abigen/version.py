"""
abigen version.

`version()` also names the installed formatter release: committed bindings are
formatted output, so a formatter upgrade can make `abigen check` report drift
even when the ABIs did not change.
"""

from __future__ import annotations

from importlib import metadata
from typing import Optional

# Bump this when publishing
__version__ = "0.3.0"

FORMATTER_DISTRIBUTION = "black"


def formatter_version() -> Optional[str]:
    """Installed version of the default formatter, or None if it is not installed."""
    try:
        return metadata.version(FORMATTER_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return None


def version() -> str:
    """e.g. '0.3.0 (black 24.4.2)'."""
    fmt = formatter_version()
    return __version__ if fmt is None else f"{__version__} ({FORMATTER_DISTRIBUTION} {fmt})"


__all__ = ["__version__", "formatter_version", "version"]
