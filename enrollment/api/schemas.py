from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field

Action = Literal[
    "accept_terms",
    "submit_identity",
    "submit_contact",
    "enter_otp",
    "paste_otp",
    "verify_otp",
    "resend_otp",
    "submit_pin",
    "start_over_pin",
    "resume",
    "restart",
]


class ActionRequest(BaseModel):
    action: Action
    payload: Dict[str, Any] = Field(default_factory=dict)


class StepResultOut(BaseModel):
    step: str
    signal: str
    advanced: bool = False
    outcome: Optional[str] = None
    error: Optional[str] = None
    fieldErrors: Dict[str, str] = Field(default_factory=dict)


class ActionResponse(BaseModel):
    status: Literal["success", "error"] = "success"
    flow: Dict[str, Any]
    result: StepResultOut
