"""Build version information."""

from __future__ import annotations

import platform

APP_VERSION = ""
GIT_COMMIT = ""
BUILD_DATE = ""

if not APP_VERSION:
    APP_VERSION = "dev"

PYTHON_VERSION = platform.python_version()
ARCH = platform.machine()


def version() -> str:
    """Return a two-line description of the build."""
    return (
        f"Version {APP_VERSION} ({GIT_COMMIT})\n"
        f"Compiled at {BUILD_DATE} using Python {PYTHON_VERSION} ({ARCH})"
    )