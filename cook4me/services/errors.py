# cook4me/services/errors.py
"""
Error kinds raised by the services. Routers translate them into responses.
"""
from __future__ import annotations

from typing import Optional


class Cook4meError(Exception):
    """Base class for expected, recoverable failures."""


class ValidationError(Cook4meError):
    """Bad user input (empty username, oversized or non-image upload)."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GenerationError(Cook4meError):
    """The text-generation service call did not succeed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code or 502


class RecipeParseError(Cook4meError):
    """The generation response was not a usable recipe JSON payload."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class PersistenceError(Cook4meError):
    """A read or write against the backing store failed."""

    def __init__(self, message: str, diagnostics: Optional[dict] = None):
        super().__init__(message)
        self.diagnostics = diagnostics or {}
