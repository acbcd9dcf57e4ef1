"""Version and environment information for validgraph.

Usage:
    from validgraph import __version__, get_version_info, format_version_info

    print(__version__)  # "0.1.0"
    print(format_version_info())  # block suitable for bug reports
"""

from __future__ import annotations

import platform
import sys
from importlib import metadata
from typing import Any, Dict, Optional

# Version components
VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 0
VERSION_SUFFIX = ""  # e.g., "alpha", "beta", "rc1"

__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}{'-' + VERSION_SUFFIX if VERSION_SUFFIX else ''}"

_DEPENDENCIES = ("pydantic", "pydantic-core", "typing-extensions")


def get_python_info() -> Dict[str, str]:
    return {
        "version": platform.python_version(),
        "implementation": platform.python_implementation(),
        "executable": sys.executable,
    }


def get_platform_info() -> Dict[str, str]:
    return {
        "system": platform.system(),
        "release": platform.release(),
        "machine": platform.machine(),
    }


def _get_package_version(distribution: str) -> Optional[str]:
    try:
        return metadata.version(distribution)
    except metadata.PackageNotFoundError:
        return None


def get_dependency_versions() -> Dict[str, Optional[str]]:
    """Map each runtime dependency to its installed version (None if absent)."""
    return {name: _get_package_version(name) for name in _DEPENDENCIES}


def get_version_info() -> Dict[str, Any]:
    """Get version, interpreter, platform and dependency information.

    Example:
        >>> info = get_version_info()
        >>> info["validgraph"]
        '0.1.0'
    """
    return {
        "validgraph": __version__,
        "python": get_python_info(),
        "platform": get_platform_info(),
        "dependencies": get_dependency_versions(),
    }


def format_version_info(info: Optional[Dict[str, Any]] = None) -> str:
    """Format version info as a human-readable block with aligned colons."""
    if info is None:
        info = get_version_info()

    sections = [
        ("Python", [(k.capitalize(), v) for k, v in info["python"].items()]),
        ("Platform", [(k.capitalize(), v) for k, v in info["platform"].items()]),
        (
            "Dependencies",
            [(k, v or "not installed") for k, v in info["dependencies"].items()],
        ),
    ]
    width = max(len(label) for _, fields in sections for label, _ in fields)

    lines = [f"validgraph: {info['validgraph']}"]
    for title, fields in sections:
        lines.append("")
        lines.append(f"{title}:")
        for label, value in fields:
            lines.append(f"  {label:>{width}} : {value}")
    return "\n".join(lines)
