import json
import time
from enrollment.settings import settings
from enrollment.utils.masking import mask_email, mask_emirates_id, mask_id, mask_name, mask_phone

# Secrets are never logged, regardless of the redaction flag
SECRET_KEYS = {"pin", "pinConfirm", "otpCode", "otpDigits", "pinDigits", "confirmDigits"}

# PII is masked when ENABLE_PII_REDACTION is on
PII_MASKERS = {
    "emiratesId": mask_emirates_id,
    "fullName": mask_name,
    "phone": mask_phone,
    "email": mask_email,
    "userId": mask_id,
}


def _redact_value(k, v):
    if k in SECRET_KEYS:
        return "[REDACTED]"
    if settings.ENABLE_PII_REDACTION and k in PII_MASKERS and isinstance(v, str):
        return PII_MASKERS[k](v)
    if isinstance(v, dict):
        return {sk: _redact_value(sk, sv) for sk, sv in v.items()}
    return v


def log(event: str, **fields):
    payload = {"ts": int(time.time()), "event": event}
    payload.update({k: _redact_value(k, v) for k, v in fields.items()})
    print(json.dumps(payload, ensure_ascii=False))
