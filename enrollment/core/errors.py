"""
Enrollment error taxonomy.

All of these are caught at the controller's step boundary and turned into
step-local, user-visible messages; none of them is fatal to the flow.
"""
from typing import Dict, Optional, Sequence


class EnrollmentError(Exception):
    """Base for every recoverable enrollment failure."""

    outcome = "error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(EnrollmentError):
    """Local, field-level. Never contacts the backend."""

    outcome = "validation_error"

    def __init__(self, field_errors: Dict[str, str]):
        first = next(iter(field_errors.values()), "")
        super().__init__(first)
        self.field_errors = dict(field_errors)


class SessionLost(EnrollmentError):
    """Required step-store keys are absent; recover by going back to `redirect_step`."""

    outcome = "session_lost"

    def __init__(self, missing: Sequence[str], redirect_step: str, message: str = ""):
        super().__init__(message)
        self.missing = list(missing)
        self.redirect_step = redirect_step


class BackendRejected(EnrollmentError):
    """4xx from the identity backend. `message` is shown verbatim."""

    outcome = "backend_rejected"

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: Optional[str] = None,
        body: Optional[dict] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.body = body or {}


class SessionExpired(BackendRejected):
    """401: the backend no longer recognises the browser/session cookie."""


class RateLimited(BackendRejected):
    """429: too many OTP/registration attempts."""


class TransportFailure(EnrollmentError):
    """Network error, timeout, 5xx or unreadable response. Always retryable."""

    outcome = "transport_failure"


class MismatchError(EnrollmentError):
    """Confirm PIN differs from create PIN; resets the whole PIN phase."""

    outcome = "mismatch"
