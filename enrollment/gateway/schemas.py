from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict

Gender = Literal["MALE", "FEMALE"]
OtpChannel = Literal["SMS", "EMAIL"]


class RegistrationStartRequest(BaseModel):
    emiratesId: str
    fullName: str
    email: str
    phone: str
    gender: Gender


class OtpSendRequest(BaseModel):
    userId: str
    channel: OtpChannel


class OtpVerifyRequest(BaseModel):
    userId: str
    otpCode: str
    channel: OtpChannel


class PinCreateRequest(BaseModel):
    userId: str
    pin: str
    pinConfirm: str


# Responses: the backend may add fields over time, keep them
class _BackendResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: Optional[str] = None
    message: Optional[str] = None


class RegistrationStartResponse(_BackendResponse):
    userId: str


class RegistrationStatusResponse(_BackendResponse):
    userId: Optional[str] = None


class OtpSendResponse(_BackendResponse):
    channel: Optional[str] = None
    expiresInSeconds: Optional[int] = None
    cooldownSeconds: Optional[int] = None


class OtpVerifyResponse(_BackendResponse):
    pass


class PinCreateResponse(_BackendResponse):
    pass
