"""
Domain errors raised by the service layer.

Routes never build HTTP errors for these themselves; the handlers registered
in main.py turn them into JSON responses with the status code below.
"""


class PlatformError(Exception):
    """Base class for every error surfaced to API callers."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "Something went wrong"):
        super().__init__(message)
        self.message = message


class Unauthenticated(PlatformError):
    status_code = 401
    code = "unauthenticated"

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class Forbidden(PlatformError):
    status_code = 403
    code = "forbidden"


class NotFound(Forbidden):
    """Missing or invisible entity. Rendered exactly like Forbidden."""


class InvalidRequest(PlatformError):
    status_code = 400
    code = "invalid_request"


class IllegalTransition(PlatformError):
    status_code = 409
    code = "illegal_transition"

    def __init__(self, current_status: str, message: str = None):
        super().__init__(message or f"Request is already {current_status}")
        self.current_status = current_status


class DuplicatePendingRequest(PlatformError):
    status_code = 409
    code = "duplicate_pending_request"


class TransientIO(PlatformError):
    status_code = 503
    code = "transient_io"

    def __init__(self, message: str = "Storage temporarily unavailable, please retry"):
        super().__init__(message)


# ============================================================
# ASSISTANT (completion endpoint) ERRORS
# ============================================================

class AssistantRateLimited(PlatformError):
    status_code = 429
    code = "assistant_rate_limited"

    def __init__(self, message: str = "Rate limit exceeded, please try again later"):
        super().__init__(message)


class AssistantQuotaExceeded(PlatformError):
    status_code = 402
    code = "assistant_quota_exceeded"

    def __init__(self, message: str = "Assistant usage quota exhausted"):
        super().__init__(message)


class AssistantUnavailable(PlatformError):
    status_code = 502
    code = "assistant_unavailable"

    def __init__(self, message: str = "Assistant is unavailable"):
        super().__init__(message)
