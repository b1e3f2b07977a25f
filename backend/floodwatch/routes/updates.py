from typing import Optional

from fastapi import APIRouter, Query

from floodwatch.db.dynamo import add_update, list_updates
from floodwatch.models.update import UpdateIn, UpdateType

router = APIRouter(prefix="/updates", tags=["updates"])


@router.get("")
def get_updates(
    type: Optional[UpdateType] = Query(None, description="info, warning or success"),
    limit: int = Query(10, ge=1, le=100),
):
    data = list_updates(update_type=type, limit=limit)
    return {"success": True, "data": data, "count": len(data)}


@router.post("", status_code=201)
def post_update(body: UpdateIn):
    return {"success": True, "data": add_update(body.message, body.type)}
