"""
Exceptions for Expense Report Service.

Everything raised before the PDF stream starts is a ReportError, which the
server turns into an ``{"error": ..., "details": ...}`` JSON response.
"""

from typing import Optional


class ReportError(Exception):
    """Base class for errors that can still become a structured response."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ReportInputError(ReportError):
    """Required request fields are missing or malformed."""

    status_code = 400


class CollaboratorError(ReportError):
    """Record storage was unavailable or returned unusable data."""

    status_code = 500


class StorageError(Exception):
    """Raised by record stores on I/O or parse failures."""
