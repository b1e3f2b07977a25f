import os
import uuid
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

log = logging.getLogger(__name__)

REGION = os.getenv("AWS_REGION", "ap-southeast-1")
SOS_TABLE = os.getenv("SOS_TABLE", "SosRequests")
SHELTERS_TABLE = os.getenv("SHELTERS_TABLE", "EvacuationCenters")
UPDATES_TABLE = os.getenv("UPDATES_TABLE", "Updates")

dynamodb = boto3.resource("dynamodb", region_name=REGION)
sos_table = dynamodb.Table(SOS_TABLE)
shelters_table = dynamodb.Table(SHELTERS_TABLE)
updates_table = dynamodb.Table(UPDATES_TABLE)


# ---------- value conversion ----------
def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_dynamo(value: Any) -> Any:
    """Dynamo rejects float; store numbers as Decimal (via str to keep precision)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_dynamo(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    """Decimal -> int/float so items can be used as plain JSON-ish dicts."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value


def _scan_all(table, **kwargs) -> List[Dict[str, Any]]:
    """Scan a table, following LastEvaluatedKey until done."""
    items: List[Dict[str, Any]] = []
    lek: Optional[Dict[str, Any]] = None
    while True:
        if lek:
            kwargs["ExclusiveStartKey"] = lek
        resp = table.scan(**kwargs)
        items.extend(resp.get("Items", []))
        lek = resp.get("LastEvaluatedKey")
        if not lek:
            break
    return items


def _build_filter(**conds):
    """AND together Attr(name).eq(value) for every condition that is not None."""
    expr = None
    for name, value in conds.items():
        if value is None:
            continue
        c = Attr(name).eq(value)
        expr = c if expr is None else expr & c
    return expr


def _newest_first(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(items, key=lambda it: it.get("created_at", ""), reverse=True)


def _update_fields(table, item_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    SET the given fields (+ updated_at) on an existing item.
    Returns the updated item, or None if no item has this id.
    """
    fields = dict(fields, updated_at=_now_iso())
    names, values, sets = {}, {}, []
    for i, (k, v) in enumerate(fields.items()):
        names[f"#k{i}"] = k
        values[f":v{i}"] = _to_dynamo(v)
        sets.append(f"#k{i} = :v{i}")

    try:
        resp = table.update_item(
            Key={"id": item_id},
            UpdateExpression="SET " + ", ".join(sets),
            ConditionExpression="attribute_exists(id)",
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ReturnValues="ALL_NEW",
        )
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
            return None
        raise
    return from_dynamo(resp.get("Attributes", {}))


# ---------- SOS requests ----------
def add_sos_request(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Store a new SOS request (status=pending) and return the stored item.
    `data` is the validated SOSRequestIn payload as a dict.
    """
    now_iso = _now_iso()
    item = dict(data)
    item.update(
        id=str(uuid.uuid4()),
        status="pending",
        created_at=now_iso,
        updated_at=now_iso,
    )
    # Dynamo does not like None for optional attrs in some clients; drop them
    item = {k: v for k, v in item.items() if v is not None}
    sos_table.put_item(Item=_to_dynamo(item))
    log.info("SOS request %s stored (%s/%s)", item["id"], item.get("help_type"), item.get("severity"))
    return item


def list_sos_requests(
    status: Optional[str] = None,
    severity: Optional[str] = None,
    help_type: Optional[str] = None,
    limit: int = 100,
) -> List[Dict[str, Any]]:
    """Newest first, optionally filtered, truncated to `limit`."""
    kwargs: Dict[str, Any] = {}
    flt = _build_filter(status=status, severity=severity, help_type=help_type)
    if flt is not None:
        kwargs["FilterExpression"] = flt
    items = _newest_first(_scan_all(sos_table, **kwargs))
    return [from_dynamo(it) for it in items[:limit]]


def list_all_sos_requests(severity: Optional[str] = None) -> List[Dict[str, Any]]:
    """Every request regardless of status (no limit), newest first."""
    kwargs: Dict[str, Any] = {}
    flt = _build_filter(severity=severity)
    if flt is not None:
        kwargs["FilterExpression"] = flt
    return [from_dynamo(it) for it in _newest_first(_scan_all(sos_table, **kwargs))]


def list_active_sos_requests() -> List[Dict[str, Any]]:
    """Everything not yet resolved; this is what the map pins and zones show."""
    items = _scan_all(sos_table, FilterExpression=Attr("status").ne("resolved"))
    return [from_dynamo(it) for it in _newest_first(items)]


def get_sos_request(request_id: str) -> Optional[Dict[str, Any]]:
    resp = sos_table.get_item(Key={"id": request_id})
    item = resp.get("Item")
    return from_dynamo(item) if item else None


def update_sos_status(request_id: str, status: str) -> Optional[Dict[str, Any]]:
    return _update_fields(sos_table, request_id, {"status": status})


# ---------- Shelters ----------
def add_shelter(data: Dict[str, Any]) -> Dict[str, Any]:
    now_iso = _now_iso()
    item = {k: v for k, v in dict(data).items() if v is not None}
    item.update(id=str(uuid.uuid4()), created_at=now_iso, updated_at=now_iso)
    shelters_table.put_item(Item=_to_dynamo(item))
    log.info("Shelter %s registered: %s", item["id"], item.get("name"))
    return item


def list_shelters(
    status: Optional[str] = None,
    has_medical: Optional[bool] = None,
    accepts_pets: Optional[bool] = None,
) -> List[Dict[str, Any]]:
    """
    Flags only narrow the result when True (False means "don't care"),
    matching the shelter list filters on the site.
    """
    kwargs: Dict[str, Any] = {}
    flt = _build_filter(
        status=status,
        has_medical=True if has_medical else None,
        accepts_pets=True if accepts_pets else None,
    )
    if flt is not None:
        kwargs["FilterExpression"] = flt
    items = _newest_first(_scan_all(shelters_table, **kwargs))
    return [from_dynamo(it) for it in items]


def update_shelter(shelter_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    fields = {k: v for k, v in fields.items() if v is not None}
    return _update_fields(shelters_table, shelter_id, fields)


# ---------- Updates (announcements) ----------
def add_update(message: str, update_type: str) -> Dict[str, Any]:
    item = {
        "id": str(uuid.uuid4()),
        "message": message,
        "type": update_type,
        "created_at": _now_iso(),
    }
    updates_table.put_item(Item=item)
    return item


def list_updates(update_type: Optional[str] = None, limit: int = 10) -> List[Dict[str, Any]]:
    kwargs: Dict[str, Any] = {}
    flt = _build_filter(type=update_type)
    if flt is not None:
        kwargs["FilterExpression"] = flt
    items = _newest_first(_scan_all(updates_table, **kwargs))
    return [from_dynamo(it) for it in items[:limit]]


# ---------- Dashboard ----------
def get_dashboard_stats() -> Dict[str, int]:
    """Counts per SOS status plus shelter capacity/occupancy totals."""
    sos_rows = _scan_all(
        sos_table,
        ProjectionExpression="#s",
        ExpressionAttributeNames={"#s": "status"},  # reserved word
    )
    shelter_rows = _scan_all(
        shelters_table,
        ProjectionExpression="#s, capacity, current_occupancy",
        ExpressionAttributeNames={"#s": "status"},
    )

    def _count(rows, status):
        return sum(1 for r in rows if r.get("status") == status)

    return {
        "total_sos": len(sos_rows),
        "pending": _count(sos_rows, "pending"),
        "in_progress": _count(sos_rows, "in_progress"),
        "resolved": _count(sos_rows, "resolved"),
        "total_shelters": len(shelter_rows),
        "shelters_open": _count(shelter_rows, "open"),
        "total_capacity": int(sum(r.get("capacity") or 0 for r in shelter_rows)),
        "total_occupancy": int(sum(r.get("current_occupancy") or 0 for r in shelter_rows)),
    }
