from dataclasses import dataclass, field
from typing import Dict, List, Optional

from enrollment.core import state_machine as sm
from enrollment.settings import settings


def _empty_slots(n: int) -> List[str]:
    return [""] * n


@dataclass
class EnrollmentSession:
    # Core identifiers
    sessionId: str = ""

    # Step
    currentStep: str = sm.TERMS  # TERMS/IDENTITY/CONTACT/OTP/PIN/DONE
    termsAccepted: bool = False

    # Contact capture (identity + userId live in the step store, not here)
    email: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None  # MALE / FEMALE

    # OTP
    otpVerified: bool = False
    otpChannel: str = settings.DEFAULT_OTP_CHANNEL  # SMS / EMAIL
    otpDigits: List[str] = field(default_factory=lambda: _empty_slots(settings.OTP_LENGTH))

    # Resend cooldown mirror. cooldownStartedAtMs lets a stateless HTTP worker
    # catch the countdown up from wall-clock time.
    resendRemaining: int = 0
    canResend: bool = True
    cooldownStartedAtMs: int = 0

    # PIN (transient: never persisted, see session_repo)
    pinPhase: str = sm.PIN_CREATE
    pinDigits: List[str] = field(default_factory=lambda: _empty_slots(settings.PIN_LENGTH))
    confirmDigits: List[str] = field(default_factory=lambda: _empty_slots(settings.PIN_LENGTH))

    # In-flight guard; resubmission is refused while set
    loading: bool = False

    # Last step-local error
    error: Optional[str] = None
    fieldErrors: Dict[str, str] = field(default_factory=dict)

    # Backend session / XSRF cookies carried between stateless HTTP requests
    backendCookies: Dict[str, str] = field(default_factory=dict)

    lastUpdatedAtEpoch: Optional[int] = None

    def clear_otp(self) -> None:
        self.otpDigits = _empty_slots(settings.OTP_LENGTH)

    def clear_pin(self) -> None:
        self.pinDigits = _empty_slots(settings.PIN_LENGTH)
        self.confirmDigits = _empty_slots(settings.PIN_LENGTH)
        self.pinPhase = sm.PIN_CREATE

    def clear_errors(self) -> None:
        self.error = None
        self.fieldErrors = {}

    def wipe(self) -> None:
        """Drop every transient field; the flow goes back to TERMS."""
        fresh = EnrollmentSession(sessionId=self.sessionId)
        self.__dict__.update(fresh.__dict__)
