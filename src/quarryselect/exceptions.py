"""
Exception hierarchy for QuarrySelect.
"""

from __future__ import annotations

from typing import List, Optional


class QuarrySelectError(Exception):
    """Base class for all QuarrySelect errors."""

    pass


class ConfigurationError(QuarrySelectError, ValueError):
    """Raised when an extraction configuration is rejected before processing."""

    def __init__(self, message: str, problems: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.problems: List[str] = list(problems or [message])


class RuntimeExtractionError(QuarrySelectError, RuntimeError):
    """Raised when a record cannot be read, queried or serialized."""

    pass
