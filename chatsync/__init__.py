# =============================================================================
# chatsync Main Package - Dynamic Version Loading
# =============================================================================
"""
chatsync - two-party message delivery and contact-sync engine

Version is loaded from installed package metadata, with pyproject.toml as
the fallback when running from a source checkout.
"""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def _get_version() -> str:
    """
    Get package version dynamically from installed metadata.

    Falls back to reading pyproject.toml if package not installed.

    Returns:
        Version string (e.g., "0.3.0")
    """
    try:
        return version("chatsync")
    except PackageNotFoundError:
        pass  # Package not installed, try fallback

    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    if pyproject_path.exists():
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
            return data["project"]["version"]

    return "0.1.0-unknown"


__version__: str = _get_version()
__description__: str = "chatsync - two-party chat delivery and contact sync"
__author__: str = "chatsync Team"

__all__ = [
    "__version__",
    "__description__",
    "__author__",
]
