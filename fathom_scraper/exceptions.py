"""
Error taxonomy for the Fathom scraper.

Playwright timeouts and errors are translated into these types at the step
where they happen, so the run boundary can decide what to log and whether the
stored session must be discarded.
"""

from typing import Any, Dict, Optional


class ScraperError(Exception):
    """Base exception for scraper errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ScraperError):
    """Raised when required settings (e.g. credentials) are missing."""
    pass


class NavigationTimeout(ScraperError):
    """Raised when a navigation or URL transition does not happen in time."""
    pass


class ElementNotFound(ScraperError):
    """Raised when an expected element never becomes visible."""
    pass


class NoMeetingFound(ElementNotFound):
    """Raised when the meeting list has no tile to select."""
    pass


class ClipboardPermissionDenied(ScraperError):
    """Raised when the page is not allowed to read the clipboard."""
    pass


class ClipboardRetriesExhausted(ScraperError):
    """Raised when no valid clipboard content shows up within the attempt budget."""

    def __init__(self, message: str, attempts: int, details: Optional[Dict[str, Any]] = None):
        self.attempts = attempts
        super().__init__(message, details)


class AuthExpired(ScraperError):
    """Raised when the site redirects away from the authenticated area."""
    pass


class InvariantViolation(ScraperError):
    """Raised when captured summary/transcript cannot form a valid record."""
    pass


class PersistenceError(ScraperError):
    """Raised when writing or reading stored meetings fails."""
    pass


def is_auth_error(error: BaseException) -> bool:
    """Check whether a failure means the stored session should be thrown away."""
    if isinstance(error, AuthExpired):
        return True
    message = str(error).lower()
    return 'auth' in message or 'login' in message
