"""
Error taxonomy for the mandate intake service.

Every failure is terminal for the current submission attempt. Nothing here
retries; the user resubmits.
"""

from typing import Optional


class IntakeError(Exception):
    """Base class for all intake failures."""


class EmptySignature(IntakeError):
    """The signature pad holds no strokes. The user must sign before submitting."""

    def __init__(self, message: str = "Please sign the form before submitting it."):
        super().__init__(message)


class KeyUnavailable(IntakeError):
    """The recipient public key could not be fetched or parsed."""


class EncryptionFailure(IntakeError):
    """Sealing the submission record failed."""


class TransportFailure(IntakeError):
    """
    The acceptor was unreachable or answered with a non-success status.

    `message` carries the acceptor's own message when it sent one, so it can
    be shown to the user unchanged.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)


class ValidationError(IntakeError):
    """Raised when input validation fails."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")
