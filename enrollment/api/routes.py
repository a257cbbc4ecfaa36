from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool

from enrollment.api.auth import require_api_key
from enrollment.api.schemas import ActionRequest, ActionResponse
from enrollment.core.orchestrator import UnknownAction, abandon_flow, get_flow, handle_action
from enrollment.utils.lock import FlowBusy

router = APIRouter(prefix="/api/enrollment", dependencies=[Depends(require_api_key)])


@router.post("/{flow_id}/actions", response_model=ActionResponse)
async def post_action(flow_id: str, req: ActionRequest):
    """Apply one wizard action to the flow and return the new render state."""
    try:
        out = await run_in_threadpool(handle_action, flow_id, req.action, req.payload)
    except UnknownAction as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FlowBusy:
        raise HTTPException(status_code=409, detail="Previous request for this flow is still in progress")
    return ActionResponse(status="success", flow=out["flow"], result=out["result"])


@router.get("/{flow_id}")
async def get_flow_state(flow_id: str):
    return await run_in_threadpool(get_flow, flow_id)


@router.delete("/{flow_id}")
async def delete_flow(flow_id: str):
    try:
        await run_in_threadpool(abandon_flow, flow_id)
    except FlowBusy:
        raise HTTPException(status_code=409, detail="Previous request for this flow is still in progress")
    return {"sessionId": flow_id, "deleted": True}
