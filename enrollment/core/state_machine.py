# Step sequence shared with whatever renders progress.
# Order is the protocol; new steps must be inserted without touching the step-store keys.

# Terms of service acceptance. Local boolean gate, no network call.
TERMS = "TERMS"

# Emirates ID + full name entry. Validated locally, written to the step store.
IDENTITY = "IDENTITY"

# Phone / email / gender capture. Calls start registration, yields userId.
CONTACT = "CONTACT"

# One-time passcode verification (OTP already dispatched by start registration).
OTP = "OTP"

# Two-phase PIN creation (create -> confirm).
PIN = "PIN"

# Terminal. Only a full restart leaves it.
DONE = "DONE"

STEPS = (TERMS, IDENTITY, CONTACT, OTP, PIN, DONE)

STEP_LABELS = {
    TERMS: "Terms",
    IDENTITY: "Identity",
    CONTACT: "Contact",
    OTP: "OTP",
    PIN: "PIN",
    DONE: "Done",
}


# PIN sub-states
PIN_CREATE = "create"
PIN_CONFIRM = "confirm"


# Backend user status -> step the flow should resume at
STATUS_RESUME_STEP = {
    "PENDING": OTP,
    "OTP_SENT": OTP,
    "OTP_VERIFIED": PIN,
    "ACTIVE": DONE,
}

# Backend statuses that end the flow; the user has to start over
BLOCKED_STATUSES = ("LOCKED", "SUSPENDED")


def step_index(step: str) -> int:
    return STEPS.index(step)


def progress(step: str) -> list:
    """Per-step render hints: completed / active / inactive."""
    current = step_index(step)
    out = []
    for i, s in enumerate(STEPS):
        if i < current:
            state = "completed"
        elif i == current:
            state = "active"
        else:
            state = "inactive"
        out.append({"step": s, "label": STEP_LABELS[s], "state": state})
    return out
