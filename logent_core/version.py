"""
Logent Version Management - Centralized version for all components

All components import from here to stay consistent.

Author: Logent contributors | 2026-10-16
"""

__version__ = "0.3.0"

VERSION_MAJOR = 0
VERSION_MINOR = 3
VERSION_PATCH = 0
VERSION_SUFFIX = ""  # e.g., "alpha", "beta", "rc1", ""

VERSION_FULL = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"
if VERSION_SUFFIX:
    VERSION_FULL = f"{VERSION_FULL}-{VERSION_SUFFIX}"


def get_version() -> str:
    """Get the current Logent version string."""
    return __version__


def get_version_info() -> dict:
    """Get detailed version information."""
    return {
        "version": __version__,
        "major": VERSION_MAJOR,
        "minor": VERSION_MINOR,
        "patch": VERSION_PATCH,
        "suffix": VERSION_SUFFIX,
        "full": VERSION_FULL,
    }


def get_short_banner() -> str:
    """Get a compact version banner."""
    return f"Logent v{__version__}"


VERSION = __version__
