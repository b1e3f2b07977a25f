from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from floodwatch.db.dynamo import (
    add_sos_request,
    get_dashboard_stats,
    get_sos_request,
    list_sos_requests,
    update_sos_status,
)
from floodwatch.models.sos import (
    ANONYMOUS_NAME,
    HelpType,
    Severity,
    SOSRequestIn,
    SOSStatus,
    SOSStatusUpdate,
)

router = APIRouter(prefix="/sos", tags=["sos"])


@router.get("")
def list_sos(
    status: Optional[SOSStatus] = Query(None, description="Filter by status"),
    severity: Optional[Severity] = Query(None, description="Filter by urgency"),
    help_type: Optional[HelpType] = Query(None, description="Filter by kind of help"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of records"),
):
    data = list_sos_requests(status=status, severity=severity, help_type=help_type, limit=limit)
    return {"success": True, "data": data, "count": len(data)}


@router.post("", status_code=201)
def create_sos(body: SOSRequestIn):
    """
    Accept the report form payload, default the name when blank,
    store it as a pending request and return the stored row.
    """
    payload = body.model_dump()
    if not (payload.get("name") or "").strip():
        payload["name"] = ANONYMOUS_NAME
    item = add_sos_request(payload)
    return {"success": True, "data": item}


# declared before /{request_id} so "stats" is not taken as an id
@router.get("/stats")
def sos_stats():
    return {"success": True, "data": get_dashboard_stats()}


@router.get("/{request_id}")
def get_sos(request_id: str):
    item = get_sos_request(request_id)
    if item is None:
        raise HTTPException(status_code=404, detail="SOS request not found")
    return {"success": True, "data": item}


@router.patch("/{request_id}/status")
def set_sos_status(request_id: str, body: SOSStatusUpdate):
    """Admin status toggle (pending -> in_progress -> resolved, or back)."""
    item = update_sos_status(request_id, body.status)
    if item is None:
        raise HTTPException(status_code=404, detail="SOS request not found")
    return {"success": True, "data": item}
