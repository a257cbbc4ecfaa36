import secrets

from fastapi import Header, HTTPException
from enrollment.settings import settings


def require_api_key(x_api_key: str = Header(default="", alias="x-api-key")):
    """
    Guards the enrollment routes for the frontend that drives them.
    - API_KEY empty: open (local development, terminal wizard).
    - API_KEY set: x-api-key must match.
    """
    expected = getattr(settings, "API_KEY", "")
    if not expected:
        return
    if not secrets.compare_digest(x_api_key.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid API key")
