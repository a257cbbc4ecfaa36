"""
Enrollment Flow Controller
--------------------------
Sequences TERMS -> IDENTITY -> CONTACT -> OTP -> PIN -> DONE over an
explicit EnrollmentSession + StepStore pair, calling the backend gateway at
CONTACT (start registration), OTP (verify / resend) and PIN (create).

Every public action returns a StepResult and never raises for validation,
backend, transport or session-loss failures: they are converted into
step-local messages here. The result's `signal` tells a presentation layer
what to do next (move focus, swap PIN phase, render a new step) without the
controller knowing anything about rendering.
"""
from __future__ import annotations

import functools
import re
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from enrollment.core import messages as msg
from enrollment.core import state_machine as sm
from enrollment.core import validators as v
from enrollment.core.errors import (
    EnrollmentError,
    MismatchError,
    SessionExpired,
    SessionLost,
    ValidationError,
)
from enrollment.core.timers import ResendCooldown, Ticker
from enrollment.gateway.client import OTP_VERIFIED
from enrollment.observability.logging import log
from enrollment.settings import settings
from enrollment.store.models import EnrollmentSession
from enrollment.store.step_store import KEY_EMIRATES_ID, KEY_FULL_NAME, KEY_USER_ID, StepStore
from enrollment.utils.masking import mask_phone
from enrollment.utils.time import elapsed_seconds, now_ms

# Presentation signals
STEP_CHANGED = "STEP_CHANGED"
FOCUS_NEXT = "FOCUS_NEXT"
PHASE_CHANGED = "PHASE_CHANGED"
UPDATED = "UPDATED"
ERROR = "ERROR"
NOOP = "NOOP"

_DIGIT_RE = re.compile(r"[0-9]?")
_PARTIAL_RE = re.compile(r"[0-9]*")


def _serialized(method):
    """Actions and live ticks share one lock, so each runs to completion before the next."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


@dataclass
class StepResult:
    step: str
    signal: str
    advanced: bool = False
    outcome: Optional[str] = None
    error: Optional[str] = None
    fieldErrors: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "signal": self.signal,
            "advanced": self.advanced,
            "outcome": self.outcome,
            "error": self.error,
            "fieldErrors": dict(self.fieldErrors),
        }


class EnrollmentController:
    def __init__(
        self,
        session: EnrollmentSession,
        store: StepStore,
        gateway,
        *,
        cooldown: Optional[ResendCooldown] = None,
        ticker_factory: Optional[Callable[[Callable[[], bool]], Ticker]] = None,
        on_outcome: Optional[Callable[[str, str], None]] = None,
    ):
        self.session = session
        self.store = store
        self.gateway = gateway
        self.cooldown = cooldown or ResendCooldown(
            settings.OTP_RESEND_COOLDOWN_SEC, remaining=session.resendRemaining
        )
        self._ticker_factory = ticker_factory
        self._ticker: Optional[Ticker] = None
        self._on_outcome = on_outcome
        self._lock = threading.RLock()
        self._sync_cooldown()

    # ------------------------------------------------------------------
    # Result plumbing
    # ------------------------------------------------------------------
    def _result(
        self,
        signal: str,
        *,
        step: Optional[str] = None,
        advanced: bool = False,
        outcome: Optional[str] = None,
    ) -> StepResult:
        s = self.session
        if outcome and self._on_outcome is not None:
            self._on_outcome(step or s.currentStep, outcome)
        return StepResult(
            step=s.currentStep,
            signal=signal,
            advanced=advanced,
            outcome=outcome,
            error=s.error,
            fieldErrors=dict(s.fieldErrors),
        )

    def _noop(self, error: Optional[str] = None) -> StepResult:
        # Refused action: report why without touching step state
        return StepResult(step=self.session.currentStep, signal=NOOP, error=error)

    def _go(self, step: str) -> StepResult:
        s = self.session
        prev = s.currentStep
        if prev == sm.OTP and step != sm.OTP:
            self._stop_ticker()
        s.currentStep = step
        log(event="enrollment_step", sessionId=s.sessionId, fromStep=prev, toStep=step)
        return self._result(STEP_CHANGED, step=prev, advanced=sm.step_index(step) > sm.step_index(prev), outcome="advanced")

    def _fail(self, exc: EnrollmentError) -> StepResult:
        """Convert any enrollment failure into a step-local result."""
        s = self.session
        step = s.currentStep
        log(
            event="enrollment_step_failed",
            sessionId=s.sessionId,
            step=step,
            errorType=type(exc).__name__,
            statusCode=getattr(exc, "status_code", None),
        )

        if isinstance(exc, ValidationError):
            s.error = None
            s.fieldErrors = exc.field_errors
            return self._result(ERROR, outcome=exc.outcome)

        if isinstance(exc, SessionLost):
            return self._redirect(exc.redirect_step, exc.message, step)

        if isinstance(exc, SessionExpired):
            # Backend no longer knows this browser session: start over
            return self._redirect(sm.TERMS, exc.message or msg.SESSION_LOST_RESTART, step)

        s.fieldErrors = {}
        s.error = exc.message
        return self._result(ERROR, outcome=exc.outcome)

    def _redirect(self, target: str, message: str, from_step: str) -> StepResult:
        """Backward transition to the earliest step able to supply lost data."""
        s = self.session
        log(event="enrollment_session_lost", sessionId=s.sessionId, fromStep=from_step, toStep=target)
        if target == sm.TERMS:
            self._reset()
        else:
            self._stop_ticker()
            s.currentStep = target
        s.fieldErrors = {}
        s.error = message
        return self._result(STEP_CHANGED, step=from_step, outcome="session_lost")

    def _reset(self) -> None:
        self._stop_ticker()
        self.store.clear()
        self.session.wipe()
        self.cooldown.reset()
        self._sync_cooldown()

    def _wrong_step(self, expected: str) -> Optional[StepResult]:
        if self.session.currentStep != expected:
            return self._noop(msg.WRONG_STEP)
        if self.session.loading:
            return self._noop(msg.BUSY)
        return None

    # ------------------------------------------------------------------
    # Cooldown / ticker
    # ------------------------------------------------------------------
    def _sync_cooldown(self) -> None:
        self.session.resendRemaining = self.cooldown.remaining
        self.session.canResend = self.cooldown.can_resend

    def _start_cooldown(self) -> None:
        self.cooldown.start()
        self.session.cooldownStartedAtMs = now_ms()
        self._sync_cooldown()
        if self._ticker_factory is not None:
            self._stop_ticker()
            self._ticker = self._ticker_factory(self.tick)
            self._ticker.start()

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    @_serialized
    def tick(self) -> bool:
        """One simulated (or live) second. Returns True while the countdown is still running."""
        if self.session.currentStep != sm.OTP:
            return False
        self.cooldown.tick()
        self._sync_cooldown()
        return not self.cooldown.can_resend

    @_serialized
    def catch_up_cooldown(self, now: int = 0) -> None:
        """
        Stateless workers do not tick; recompute the countdown from the
        wall-clock start instead.
        """
        s = self.session
        if not s.cooldownStartedAtMs:
            return
        elapsed = elapsed_seconds(s.cooldownStartedAtMs, now)
        self.cooldown.remaining = max(0, self.cooldown.seconds - elapsed)
        self._sync_cooldown()

    @_serialized
    def close(self) -> None:
        """Presentation is going away: no timer may outlive it."""
        self._stop_ticker()

    # ------------------------------------------------------------------
    # TERMS
    # ------------------------------------------------------------------
    @_serialized
    def accept_terms(self, accepted: bool) -> StepResult:
        refused = self._wrong_step(sm.TERMS)
        if refused:
            return refused
        s = self.session
        if not accepted:
            s.termsAccepted = False
            return self._fail(ValidationError({"terms": msg.TERMS_REQUIRED}))
        # A new attempt starts here; nothing from an earlier one may leak in
        self.store.clear()
        s.termsAccepted = True
        s.clear_errors()
        return self._go(sm.IDENTITY)

    # ------------------------------------------------------------------
    # IDENTITY
    # ------------------------------------------------------------------
    @_serialized
    def submit_identity(self, emirates_id: str, full_name: str) -> StepResult:
        refused = self._wrong_step(sm.IDENTITY)
        if refused:
            return refused
        s = self.session
        emirates_id = v.format_emirates_id(emirates_id)
        full_name = (full_name or "").strip()

        errors = v.validate_identity(emirates_id, full_name)
        if errors:
            return self._fail(ValidationError(errors))

        self.store.set(KEY_EMIRATES_ID, emirates_id)
        self.store.set(KEY_FULL_NAME, full_name)
        s.clear_errors()
        return self._go(sm.CONTACT)

    # ------------------------------------------------------------------
    # CONTACT
    # ------------------------------------------------------------------
    @_serialized
    def submit_contact(self, phone: str, email: str, gender: str) -> StepResult:
        refused = self._wrong_step(sm.CONTACT)
        if refused:
            return refused
        s = self.session
        phone = v.normalize_phone(phone)
        email = (email or "").strip()
        gender = (gender or "").strip().upper()

        errors = v.validate_contact(phone, email, gender)
        if errors:
            return self._fail(ValidationError(errors))

        missing = self.store.missing(KEY_EMIRATES_ID, KEY_FULL_NAME)
        if missing:
            return self._fail(SessionLost(missing, sm.IDENTITY, msg.SESSION_LOST_IDENTITY))

        s.phone, s.email, s.gender = phone, email, gender
        s.clear_errors()
        s.loading = True
        try:
            resp = self.gateway.start_registration(
                emirates_id=self.store.get(KEY_EMIRATES_ID),
                full_name=self.store.get(KEY_FULL_NAME),
                email=email,
                phone=phone,
                gender=gender,
            )
        except EnrollmentError as e:
            return self._fail(e)
        finally:
            s.loading = False

        self.store.set(KEY_USER_ID, resp.userId)
        s.otpVerified = False
        s.clear_otp()
        # start registration already dispatched the first OTP
        result = self._go(sm.OTP)
        self._start_cooldown()
        return result

    # ------------------------------------------------------------------
    # OTP
    # ------------------------------------------------------------------
    def _otp_complete(self) -> bool:
        return all(self.session.otpDigits)

    @_serialized
    def enter_otp_digit(self, index: int, value: str) -> StepResult:
        refused = self._wrong_step(sm.OTP)
        if refused:
            return refused
        s = self.session
        value = value or ""
        if not _DIGIT_RE.fullmatch(value) or not 0 <= index < len(s.otpDigits):
            return self._noop()
        s.otpDigits[index] = value
        s.clear_errors()
        if self._otp_complete():
            return self.verify_otp()
        if value and index < len(s.otpDigits) - 1:
            return self._result(FOCUS_NEXT)
        return self._result(UPDATED)

    @_serialized
    def paste_otp(self, text: str) -> StepResult:
        """Pasted text counts only when it yields a full code."""
        refused = self._wrong_step(sm.OTP)
        if refused:
            return refused
        digits = v.digits_only(text)[: v.OTP_LENGTH]
        if len(digits) != v.OTP_LENGTH:
            return self._noop()
        return self.fill_otp(digits)

    @_serialized
    def fill_otp(self, code: str) -> StepResult:
        refused = self._wrong_step(sm.OTP)
        if refused:
            return refused
        s = self.session
        code = code or ""
        if not _PARTIAL_RE.fullmatch(code) or len(code) > v.OTP_LENGTH:
            return self._noop()
        s.otpDigits = list(code) + [""] * (v.OTP_LENGTH - len(code))
        s.clear_errors()
        if self._otp_complete():
            return self.verify_otp()
        return self._result(UPDATED)

    @_serialized
    def verify_otp(self) -> StepResult:
        refused = self._wrong_step(sm.OTP)
        if refused:
            return refused
        s = self.session
        code = "".join(s.otpDigits)
        if not v.validate_otp_code(code):
            return self._fail(ValidationError({"otp": msg.OTP_INCOMPLETE}))

        user_id = self.store.get(KEY_USER_ID)
        if not user_id:
            return self._fail(SessionLost([KEY_USER_ID], sm.TERMS, msg.SESSION_LOST_RESTART))

        s.loading = True
        try:
            resp = self.gateway.verify_otp(user_id=user_id, otp_code=code, channel=s.otpChannel)
        except EnrollmentError as e:
            s.clear_otp()
            return self._fail(e)
        finally:
            s.loading = False

        s.clear_otp()
        if resp.status != OTP_VERIFIED:
            s.fieldErrors = {}
            s.error = resp.message or msg.OTP_INVALID
            return self._result(ERROR, outcome="otp_invalid")

        s.otpVerified = True
        s.clear_errors()
        self.cooldown.reset()
        self._sync_cooldown()
        s.cooldownStartedAtMs = 0
        s.clear_pin()
        return self._go(sm.PIN)

    @_serialized
    def resend_otp(self) -> StepResult:
        refused = self._wrong_step(sm.OTP)
        if refused:
            return refused
        s = self.session
        if not self.cooldown.can_resend:
            return self._noop(msg.OTP_RESEND_COOLDOWN)

        user_id = self.store.get(KEY_USER_ID)
        if not user_id:
            return self._fail(SessionLost([KEY_USER_ID], sm.TERMS, msg.SESSION_LOST_RESTART))

        s.loading = True
        try:
            self.gateway.send_otp(user_id=user_id, channel=s.otpChannel)
        except EnrollmentError as e:
            return self._fail(e)
        finally:
            s.loading = False

        s.clear_otp()
        s.clear_errors()
        self._start_cooldown()
        return self._result(UPDATED, outcome="resent")

    # ------------------------------------------------------------------
    # PIN
    # ------------------------------------------------------------------
    def _pin_precondition(self) -> Optional[StepResult]:
        refused = self._wrong_step(sm.PIN)
        if refused:
            return refused
        if not self.session.otpVerified:
            return self._redirect(sm.OTP, msg.PIN_OTP_REQUIRED, sm.PIN)
        return None

    def _current_pin_buffer(self) -> List[str]:
        s = self.session
        return s.pinDigits if s.pinPhase == sm.PIN_CREATE else s.confirmDigits

    def _after_pin_edit(self, index: int, value: str) -> StepResult:
        s = self.session
        buf = self._current_pin_buffer()
        if all(buf):
            if s.pinPhase == sm.PIN_CREATE:
                s.pinPhase = sm.PIN_CONFIRM
                return self._result(PHASE_CHANGED)
            return self.submit_pin()
        if value and index < len(buf) - 1:
            return self._result(FOCUS_NEXT)
        return self._result(UPDATED)

    @_serialized
    def enter_pin_digit(self, index: int, value: str) -> StepResult:
        refused = self._pin_precondition()
        if refused:
            return refused
        value = value or ""
        buf = self._current_pin_buffer()
        if not _DIGIT_RE.fullmatch(value) or not 0 <= index < len(buf):
            return self._noop()
        buf[index] = value
        self.session.clear_errors()
        return self._after_pin_edit(index, value)

    @_serialized
    def fill_pin(self, digits: str) -> StepResult:
        """Fill the whole buffer of the current phase at once."""
        refused = self._pin_precondition()
        if refused:
            return refused
        s = self.session
        digits = digits or ""
        if not _PARTIAL_RE.fullmatch(digits) or len(digits) > v.PIN_LENGTH:
            return self._noop()
        filled = list(digits) + [""] * (v.PIN_LENGTH - len(digits))
        if s.pinPhase == sm.PIN_CREATE:
            s.pinDigits = filled
        else:
            s.confirmDigits = filled
        s.clear_errors()
        return self._after_pin_edit(len(digits) - 1, digits[-1:] if digits else "")

    @_serialized
    def start_over_pin(self) -> StepResult:
        refused = self._pin_precondition()
        if refused:
            return refused
        s = self.session
        s.clear_pin()
        s.clear_errors()
        return self._result(PHASE_CHANGED)

    def _reset_pin_phase(self, exc: EnrollmentError) -> StepResult:
        s = self.session
        s.clear_pin()
        s.fieldErrors = {}
        s.error = exc.message
        return self._result(PHASE_CHANGED, outcome=exc.outcome)

    @_serialized
    def submit_pin(self) -> StepResult:
        refused = self._pin_precondition()
        if refused:
            return refused
        s = self.session
        pin = "".join(s.pinDigits)
        confirm = "".join(s.confirmDigits)

        if s.pinPhase != sm.PIN_CONFIRM or not v.validate_pin_shape(confirm):
            return self._fail(ValidationError({"pinConfirm": msg.PIN_SHAPE_INVALID}))

        if pin != confirm:
            return self._reset_pin_phase(MismatchError(msg.PIN_MISMATCH))

        errors = v.validate_pin(pin)
        if errors:
            return self._reset_pin_phase(ValidationError(errors))

        user_id = self.store.get(KEY_USER_ID)
        if not user_id:
            s.clear_pin()
            return self._fail(SessionLost([KEY_USER_ID], sm.TERMS, msg.SESSION_LOST_RESTART))

        s.loading = True
        try:
            self.gateway.create_pin(user_id=user_id, pin=pin, pin_confirm=confirm)
        except SessionExpired as e:
            s.clear_pin()
            return self._fail(e)
        except EnrollmentError as e:
            return self._reset_pin_phase(e)
        finally:
            s.loading = False

        # Account is active: identity data and userId must not outlive the flow
        self.store.clear()
        s.clear_pin()
        s.clear_errors()
        return self._go(sm.DONE)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @_serialized
    def restart(self) -> StepResult:
        """Abandon (or leave DONE) and start a brand-new attempt at TERMS."""
        if self.session.loading:
            return self._noop(msg.BUSY)
        prev = self.session.currentStep
        self._reset()
        log(event="enrollment_restarted", sessionId=self.session.sessionId, fromStep=prev)
        return self._result(STEP_CHANGED, step=prev)

    @_serialized
    def resume(self) -> StepResult:
        """
        Re-align the step with the backend's view of the user when a userId
        survives (e.g. the presentation layer was reloaded mid-flow).
        """
        s = self.session
        if s.loading:
            return self._noop(msg.BUSY)
        user_id = self.store.get(KEY_USER_ID)
        if not user_id:
            return self._noop()

        s.loading = True
        try:
            resp = self.gateway.get_registration_status(user_id)
        except EnrollmentError as e:
            return self._fail(e)
        finally:
            s.loading = False

        status = (resp.status or "").upper()
        if status in sm.BLOCKED_STATUSES:
            return self._redirect(sm.TERMS, msg.ACCOUNT_BLOCKED, s.currentStep)

        target = sm.STATUS_RESUME_STEP.get(status)
        if target is None or target == s.currentStep:
            return self._result(UPDATED)
        if target == sm.DONE:
            self.store.clear()
        if target == sm.PIN:
            s.otpVerified = True
            s.clear_pin()
        s.clear_errors()
        return self._go(target)

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------
    @_serialized
    def snapshot(self) -> dict:
        """Render-safe view. PIN and OTP digits are reported as counts only."""
        s = self.session
        return {
            "sessionId": s.sessionId,
            "currentStep": s.currentStep,
            "progress": sm.progress(s.currentStep),
            "termsAccepted": s.termsAccepted,
            "hasIdentity": not self.store.missing(KEY_EMIRATES_ID, KEY_FULL_NAME),
            "phone": mask_phone(s.phone) if s.phone else None,
            "otpChannel": s.otpChannel,
            "otpVerified": s.otpVerified,
            "otpFilled": sum(1 for d in s.otpDigits if d),
            "canResend": s.canResend,
            "resendRemaining": s.resendRemaining,
            "pinPhase": s.pinPhase,
            "pinFilled": sum(1 for d in s.pinDigits if d),
            "confirmFilled": sum(1 for d in s.confirmDigits if d),
            "pinRules": [
                {"rule": key, "label": label, "valid": ok}
                for key, label, ok in v.pin_rules("".join(s.pinDigits))
            ],
            "loading": s.loading,
            "error": s.error,
            "fieldErrors": dict(s.fieldErrors),
        }
