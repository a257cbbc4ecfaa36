"""
Server-driven form mode: one HTTP request = one wizard action.

Each action loads the flow's EnrollmentSession and Redis step store, runs a
short-lived controller under the per-flow lock, persists the result and
returns a render-safe snapshot. No timers run here; the resend cooldown is
recomputed from wall-clock time on every request.
"""
from typing import Any, Callable, Dict, Optional

from enrollment.core.controller import PHASE_CHANGED, EnrollmentController, StepResult
from enrollment.gateway.client import BackendGateway
from enrollment.observability import metrics
from enrollment.observability.logging import log
from enrollment.store.models import EnrollmentSession
from enrollment.store.session_repo import delete_session, load_session, save_session
from enrollment.store.step_store import RedisStepStore
from enrollment.utils.lock import flow_lock


class UnknownAction(ValueError):
    pass


def _submit_pin(c: EnrollmentController, p: Dict[str, Any]) -> StepResult:
    # Both PIN entries arrive together; the confirmation round stays in memory
    reset = c.start_over_pin()
    if reset.signal != PHASE_CHANGED:
        return reset
    first = c.fill_pin(str(p.get("pin") or ""))
    if first.signal != PHASE_CHANGED:
        return first
    return c.fill_pin(str(p.get("pinConfirm") or ""))


ACTIONS: Dict[str, Callable[[EnrollmentController, Dict[str, Any]], StepResult]] = {
    "accept_terms": lambda c, p: c.accept_terms(bool(p.get("accepted"))),
    "submit_identity": lambda c, p: c.submit_identity(p.get("emiratesId") or "", p.get("fullName") or ""),
    "submit_contact": lambda c, p: c.submit_contact(
        p.get("phone") or "", p.get("email") or "", p.get("gender") or ""
    ),
    "enter_otp": lambda c, p: c.fill_otp(str(p.get("otpCode") or "")),
    "paste_otp": lambda c, p: c.paste_otp(str(p.get("text") or "")),
    "verify_otp": lambda c, p: c.verify_otp(),
    "resend_otp": lambda c, p: c.resend_otp(),
    "submit_pin": _submit_pin,
    "start_over_pin": lambda c, p: c.start_over_pin(),
    "resume": lambda c, p: c.resume(),
    "restart": lambda c, p: c.restart(),
}


def build_gateway(session: EnrollmentSession) -> BackendGateway:
    return BackendGateway(cookies=session.backendCookies)


def _controller(session: EnrollmentSession, gateway: BackendGateway) -> EnrollmentController:
    controller = EnrollmentController(
        session,
        RedisStepStore(session.sessionId),
        gateway,
        on_outcome=metrics.record_step_outcome,
    )
    controller.catch_up_cooldown()
    return controller


def handle_action(flow_id: str, action: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    handler = ACTIONS.get(action)
    if handler is None:
        raise UnknownAction(f"Unknown action: {action}")

    with flow_lock(flow_id):
        session = load_session(flow_id)
        gateway = build_gateway(session)
        controller = _controller(session, gateway)
        try:
            result = handler(controller, payload or {})
            session.backendCookies = gateway.cookie_dict()
            save_session(session)
        finally:
            controller.close()
            gateway.close()

    log(
        event="enrollment_action",
        sessionId=flow_id,
        action=action,
        step=result.step,
        signal=result.signal,
        outcome=result.outcome,
    )
    return {"flow": controller.snapshot(), "result": result.to_dict()}


def get_flow(flow_id: str) -> Dict[str, Any]:
    session = load_session(flow_id)
    gateway = build_gateway(session)
    try:
        return _controller(session, gateway).snapshot()
    finally:
        gateway.close()


def abandon_flow(flow_id: str) -> None:
    """Destroy every trace of the attempt: step store first, then flow state."""
    with flow_lock(flow_id):
        RedisStepStore(flow_id).clear()
        delete_session(flow_id)
    log(event="enrollment_abandoned", sessionId=flow_id)
