from typing import Optional


class MarkovaError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "error_type": type(self).__name__
        }


class ValidationError(MarkovaError):
    """Caller input violates a precondition. Never retried."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class NotFoundError(MarkovaError):
    status_code = 404


class PermissionDeniedError(MarkovaError):
    status_code = 403


class RemoteServiceError(MarkovaError):
    """The generation endpoint returned a non-success response.

    The remote message is kept verbatim for diagnostics.
    """

    status_code = 502

    def __init__(self, message: str, remote_status: Optional[int] = None):
        super().__init__(message)
        self.remote_status = remote_status


class NoOutputError(MarkovaError):
    """A success response lacked the expected payload shape"""

    status_code = 502


class IncompleteOutputError(NoOutputError):
    """Structured output is missing required fields or has the wrong post count"""

    def __init__(self, message: str, missing_fields: Optional[list] = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []


class AuthExpiredError(MarkovaError):
    """The remote credential is missing or became invalid.

    Kept apart from RemoteServiceError so callers can prompt for
    re-authentication instead of retrying.
    """

    status_code = 401


class PollTimeoutError(MarkovaError):
    status_code = 504
