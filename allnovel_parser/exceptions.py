"""
Custom exceptions for the AllNovel parser.

Error severity:
  - FetchError           -> RECOVERABLE: a single candidate URL failed; the
                            caller moves on to the next candidate if one exists.
  - SourceExhaustedError -> FAIL HARD: every candidate URL of an operation failed.

Extraction misses (a field nobody could locate) and malformed URLs are never
raised. They surface as None / empty values or as the original string.
"""

from typing import Optional


class AllNovelError(Exception):
    """Base exception for all AllNovel parser errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- RECOVERABLE: one document could not be retrieved ---

class FetchError(AllNovelError):
    """
    Raised by a fetcher when a URL could not be retrieved.

    Covers both non-success HTTP statuses and network failures.
    """

    def __init__(
        self,
        message: str,
        url: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code  # None for network-level failures


# --- FAIL HARD: nothing left to try ---

class SourceExhaustedError(AllNovelError):
    """
    Raised when every candidate URL for an operation failed to fetch.
    """

    def __init__(
        self,
        operation: str,
        attempts: list[FetchError],
        details: Optional[dict] = None
    ):
        super().__init__(
            f"Could not fetch any {operation} candidate "
            f"({len(attempts)} attempted)",
            details
        )
        self.operation = operation
        self.attempts = attempts

    def to_response(self) -> dict:
        """Convert to an error payload for the host application."""
        return {
            "error": "SourceExhaustedError",
            "message": self.message,
            "operation": self.operation,
            "attempted_urls": [attempt.url for attempt in self.attempts],
            "details": self.details
        }
