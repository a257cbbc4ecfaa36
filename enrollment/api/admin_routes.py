from fastapi import APIRouter, Depends, HTTPException, Header
from enrollment.settings import settings
import enrollment.observability.metrics as metrics

router = APIRouter(prefix="/admin", tags=["admin"])

def require_admin(x_admin_key: str = Header(default="", alias="x-admin-key")):
    if not settings.ADMIN_RBAC_ENABLED:
        return
    # Secure default: if enabled but no key configured, reject all.
    if not settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Admin access disabled (no key configured)")
    if x_admin_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Invalid admin key")

@router.get("/funnel")
def get_funnel(_=Depends(require_admin)):
    """Per-step outcome counters backed by Redis."""
    return {"enabled": bool(settings.ENABLE_METRICS), "funnel": metrics.get_funnel_snapshot()}
