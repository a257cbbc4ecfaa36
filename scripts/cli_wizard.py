#!/usr/bin/env python3
"""
Terminal front-end for the enrollment wizard.

Drives EnrollmentController in-process against the configured backend
(BACKEND_BASE_URL) with an in-memory step store and a live resend ticker.
Type 'restart' at any prompt to start over, 'exit' to quit.
"""
import sys
import getpass

from enrollment.core import state_machine as sm
from enrollment.core.controller import EnrollmentController
from enrollment.core.timers import Ticker
from enrollment.gateway.client import BackendGateway
from enrollment.store.models import EnrollmentSession
from enrollment.store.step_store import InMemoryStepStore


class Restart(Exception):
    pass


def ask(prompt: str, secret: bool = False) -> str:
    raw = getpass.getpass(prompt) if secret else input(prompt)
    raw = raw.strip()
    if raw.lower() in ("exit", "quit"):
        raise SystemExit(0)
    if raw.lower() == "restart":
        raise Restart()
    return raw


def show(controller: EnrollmentController) -> None:
    snap = controller.snapshot()
    bar = " > ".join(
        f"[{p['label']}]" if p["state"] == "active" else p["label"] for p in snap["progress"]
    )
    print(f"\n{bar}")
    if snap["error"]:
        print(f"  ! {snap['error']}")
    for field, message in snap["fieldErrors"].items():
        print(f"  ! {field}: {message}")


def step_terms(c: EnrollmentController) -> None:
    answer = ask("Do you accept the terms and conditions? [y/N] ")
    c.accept_terms(answer.lower() in ("y", "yes"))


def step_identity(c: EnrollmentController) -> None:
    eid = ask("Emirates ID (784-YYYY-NNNNNNN-C): ")
    name = ask("Full name: ")
    c.submit_identity(eid, name)


def step_contact(c: EnrollmentController) -> None:
    phone = ask("Phone (+971XXXXXXXXX): ")
    email = ask("Email: ")
    gender = ask("Gender (MALE/FEMALE): ")
    c.submit_contact(phone, email, gender)


def step_otp(c: EnrollmentController) -> None:
    snap = c.snapshot()
    hint = "type 'resend' for a new code" if snap["canResend"] else f"resend in {snap['resendRemaining']}s"
    code = ask(f"Enter the 6-digit code sent to {snap['phone']} ({hint}): ")
    if code.lower() == "resend":
        c.resend_otp()
        return
    c.fill_otp(code)


def step_pin(c: EnrollmentController) -> None:
    snap = c.snapshot()
    if snap["pinPhase"] == sm.PIN_CREATE:
        for rule in snap["pinRules"]:
            print(f"  {'✓' if rule['valid'] else '○'} {rule['label']}")
        c.fill_pin(ask("Create a 6-digit PIN: ", secret=True))
    else:
        c.fill_pin(ask("Confirm your PIN: ", secret=True))


STEP_HANDLERS = {
    sm.TERMS: step_terms,
    sm.IDENTITY: step_identity,
    sm.CONTACT: step_contact,
    sm.OTP: step_otp,
    sm.PIN: step_pin,
}


def main() -> int:
    session = EnrollmentSession(sessionId="cli")
    with BackendGateway() as gateway:
        controller = EnrollmentController(
            session,
            InMemoryStepStore(),
            gateway,
            ticker_factory=lambda on_tick: Ticker(on_tick),
        )
        try:
            while session.currentStep != sm.DONE:
                show(controller)
                try:
                    STEP_HANDLERS[session.currentStep](controller)
                except Restart:
                    controller.restart()
            show(controller)
            print("Your account is active. You can now sign in.")
        finally:
            controller.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
