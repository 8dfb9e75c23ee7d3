"""
Exceptions raised by the site build services.
"""

from pathlib import Path
from typing import Optional


class SiteBuildError(Exception):
    """Base exception for site build errors."""
    pass


class MissingPartialError(SiteBuildError):
    """Raised when an include marker references a partial that cannot be read."""

    def __init__(self, reference: str, path: Optional[Path] = None, reason: str = ""):
        self.reference = reference
        self.path = path
        message = f"Failed to include partial '{reference}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class StylesheetError(SiteBuildError):
    """Raised when a stylesheet fails to compile or cannot be written."""
    pass
