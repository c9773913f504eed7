"""
BlockGraph - Version Management
=================================
Gestione versioning semantico.

Last Updated: 2026-10-17
Version: 1.0.0
"""

from typing import NamedTuple


# ============================================================================
# VERSION INFO
# ============================================================================

class VersionInfo(NamedTuple):
    """Version information structure"""
    major: int
    minor: int
    patch: int
    prerelease: str = ""
    build: str = ""


# Current version (Semantic Versioning)
VERSION = VersionInfo(
    major=1,
    minor=0,
    patch=0,
    prerelease="",  # alpha, beta, rc1, etc.
    build=""  # Build metadata
)


def get_version_string() -> str:
    """
    Get version as string.

    Returns:
        str: Version (e.g., "1.0.0", "1.0.0-beta", "1.0.0+build123")

    Example:
        >>> get_version_string()
        '1.0.0'
    """
    version_str = f"{VERSION.major}.{VERSION.minor}.{VERSION.patch}"

    if VERSION.prerelease:
        version_str += f"-{VERSION.prerelease}"

    if VERSION.build:
        version_str += f"+{VERSION.build}"

    return version_str


# ============================================================================
# EXPORT
# ============================================================================

__version__ = get_version_string()

__all__ = [
    "__version__",
    "VERSION",
    "get_version_string",
]
