"""
Backend Gateway
---------------
httpx client for the identity backend's registration / OTP / PIN contract.

Every call:
- carries X-Request-ID for correlation and, when the backend has issued an
  XSRF-TOKEN cookie, the matching X-XSRF-TOKEN header (double-submit CSRF);
- is bounded by BACKEND_TIMEOUT_SEC, so a hung backend becomes a retryable
  TransportFailure instead of a step stuck in loading;
- maps 4xx to BackendRejected with the body's `message` (or a per-operation
  fallback) and everything else that is not 2xx to TransportFailure.
"""
from __future__ import annotations

import random
import string
import time
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from enrollment.core import messages as msg
from enrollment.core.errors import (
    BackendRejected,
    RateLimited,
    SessionExpired,
    TransportFailure,
)
from enrollment.gateway.schemas import (
    OtpSendRequest,
    OtpSendResponse,
    OtpVerifyRequest,
    OtpVerifyResponse,
    PinCreateRequest,
    PinCreateResponse,
    RegistrationStartRequest,
    RegistrationStartResponse,
    RegistrationStatusResponse,
)
from enrollment.observability.logging import log
from enrollment.settings import settings

CSRF_COOKIE = "XSRF-TOKEN"
CSRF_HEADER = "X-XSRF-TOKEN"
REQUEST_ID_HEADER = "X-Request-ID"

OTP_VERIFIED = "OTP_VERIFIED"
OTP_INVALID = "OTP_INVALID"

T = TypeVar("T", bound=BaseModel)

_B36 = string.digits + string.ascii_lowercase


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, rem = divmod(n, 36)
        out.append(_B36[rem])
    return "".join(reversed(out))


def generate_request_id() -> str:
    suffix = "".join(random.choice(_B36) for _ in range(6))
    return f"req_{_base36(int(time.time() * 1000))}_{suffix}"


def _json_or_empty(resp: httpx.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class BackendGateway:
    def __init__(
        self,
        base_url: str = "",
        timeout: float = 0.0,
        transport: Optional[httpx.BaseTransport] = None,
        client: Optional[httpx.Client] = None,
        cookies: Optional[Dict[str, str]] = None,
    ):
        self._client = client or httpx.Client(
            base_url=base_url or settings.BACKEND_BASE_URL,
            timeout=timeout or settings.BACKEND_TIMEOUT_SEC,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            transport=transport,
        )
        host = self._client.base_url.host
        for name, value in (cookies or {}).items():
            # Scoped to the backend host so a re-issued cookie replaces it
            self._client.cookies.set(name, value, domain=host)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "BackendGateway":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def cookie_dict(self) -> Dict[str, str]:
        """Backend session + XSRF cookies, for carrying across stateless requests."""
        # Most specific path wins, as in a browser
        jar = sorted(self._client.cookies.jar, key=lambda c: len(c.path or ""))
        return {c.name: c.value for c in jar}

    def _headers(self) -> Dict[str, str]:
        headers = {REQUEST_ID_HEADER: generate_request_id()}
        token = self.cookie_dict().get(CSRF_COOKIE)
        if token:
            headers[CSRF_HEADER] = token
        return headers

    def _request(self, method: str, path: str, body: Optional[BaseModel] = None) -> httpx.Response:
        headers = self._headers()
        start = time.time()
        try:
            resp = self._client.request(
                method,
                path,
                json=body.model_dump() if body is not None else None,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            log(event="backend_timeout", path=path, requestId=headers[REQUEST_ID_HEADER],
                elapsedMs=int((time.time() - start) * 1000), errorType=type(e).__name__)
            raise TransportFailure(msg.TRANSPORT_FAILED) from e
        except httpx.HTTPError as e:
            log(event="backend_unreachable", path=path, requestId=headers[REQUEST_ID_HEADER],
                errorType=type(e).__name__, error=str(e)[:300])
            raise TransportFailure(msg.TRANSPORT_FAILED) from e

        log(
            event="backend_response",
            method=method,
            path=path,
            requestId=headers[REQUEST_ID_HEADER],
            statusCode=int(resp.status_code),
            elapsedMs=int((time.time() - start) * 1000),
        )
        return resp

    def _raise_for_status(self, resp: httpx.Response, fallback: str) -> Dict[str, Any]:
        data = _json_or_empty(resp)
        code = resp.status_code
        if 200 <= code < 300:
            return data
        if 400 <= code < 500:
            message = data.get("message") or fallback
            error_code = data.get("error") or data.get("status")
            if code == 401:
                raise SessionExpired(message, code, error_code, data)
            if code == 429:
                raise RateLimited(message, code, error_code, data)
            raise BackendRejected(message, code, error_code, data)
        raise TransportFailure(msg.TRANSPORT_FAILED)

    def _parse(self, model: Type[T], data: Dict[str, Any]) -> T:
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            log(event="backend_contract_mismatch", model=model.__name__, error=str(e)[:300])
            raise TransportFailure(msg.TRANSPORT_FAILED) from e

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------
    def start_registration(
        self, emirates_id: str, full_name: str, email: str, phone: str, gender: str
    ) -> RegistrationStartResponse:
        body = RegistrationStartRequest(
            emiratesId=emirates_id, fullName=full_name, email=email, phone=phone, gender=gender
        )
        resp = self._request("POST", "/registration/start", body)
        data = self._raise_for_status(resp, msg.REGISTRATION_FAILED)
        return self._parse(RegistrationStartResponse, data)

    def get_registration_status(self, user_id: str) -> RegistrationStatusResponse:
        resp = self._request("GET", f"/registration/status/{user_id}")
        data = self._raise_for_status(resp, msg.STATUS_FAILED)
        return self._parse(RegistrationStatusResponse, data)

    def send_otp(self, user_id: str, channel: str) -> OtpSendResponse:
        body = OtpSendRequest(userId=user_id, channel=channel)
        resp = self._request("POST", "/otp/send", body)
        data = self._raise_for_status(resp, msg.OTP_RESEND_FAILED)
        return self._parse(OtpSendResponse, data)

    def verify_otp(self, user_id: str, otp_code: str, channel: str) -> OtpVerifyResponse:
        """
        A wrong code comes back as 400 with status OTP_INVALID; that is a
        normal verification result, not an error.
        """
        body = OtpVerifyRequest(userId=user_id, otpCode=otp_code, channel=channel)
        resp = self._request("POST", "/otp/verify", body)
        if resp.status_code == 400:
            data = _json_or_empty(resp)
            if data.get("status") == OTP_INVALID:
                return self._parse(OtpVerifyResponse, data)
        data = self._raise_for_status(resp, msg.OTP_VERIFY_FAILED)
        return self._parse(OtpVerifyResponse, data)

    def create_pin(self, user_id: str, pin: str, pin_confirm: str) -> PinCreateResponse:
        body = PinCreateRequest(userId=user_id, pin=pin, pinConfirm=pin_confirm)
        resp = self._request("POST", "/pin/create", body)
        data = self._raise_for_status(resp, msg.PIN_CREATE_FAILED)
        return self._parse(PinCreateResponse, data)
