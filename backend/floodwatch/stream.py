# backend/floodwatch/stream.py
from typing import Any, Dict, List, Optional

from boto3.dynamodb.types import TypeDeserializer

from floodwatch.db.dynamo import from_dynamo, list_active_sos_requests
from floodwatch.services import alerts
from floodwatch.services.density import density_zones_by_cell

_deserializer = TypeDeserializer()


def _image(raw: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Stream image ({"lat": {"N": "7.0"}, ...}) -> plain dict."""
    if not raw:
        return None
    return from_dynamo({k: _deserializer.deserialize(v) for k, v in raw.items()})


def _is_active(row: Optional[Dict[str, Any]]) -> bool:
    return row is not None and row.get("status") != "resolved"


def _rows_before_batch(current: List[Dict[str, Any]], records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Undo the batch on top of the current active rows: inserts are dropped,
    modified rows go back to their OldImage, removed rows come back.
    Needs the table stream to carry NEW_AND_OLD_IMAGES.
    """
    by_id = {row["id"]: row for row in current}
    for rec in reversed(records):
        ddb = rec.get("dynamodb", {}) or {}
        old = _image(ddb.get("OldImage"))
        new = _image(ddb.get("NewImage"))
        rid = (new or old or {}).get("id")
        if rid is None:
            continue
        by_id.pop(rid, None)
        if _is_active(old):
            by_id[rid] = old
    return list(by_id.values())


def handler(event, context):
    """
    DynamoDB Streams handler for the SOS table.
    Recomputes the density zones from *all* active requests, compares them
    cell by cell with the zones as they were before this batch, and alerts
    only for cells the batch pushed into the high tier.
    """
    records = [
        rec for rec in event.get("Records", [])
        if rec.get("eventSource") == "aws:dynamodb"
        and rec.get("eventName") in ("INSERT", "MODIFY", "REMOVE")
    ]
    if not records:
        return {"records": 0, "zones": 0, "alerts_sent": 0}

    rows = list_active_sos_requests()
    now = density_zones_by_cell(rows)
    before = density_zones_by_cell(_rows_before_batch(rows, records))

    changes = [(before.get(key), zone) for key, zone in now.items()]
    sent = alerts.alert_for_zones(changes, topic_arn=alerts.ALERT_TOPIC_ARN)

    return {"records": len(records), "zones": len(now), "alerts_sent": len(sent)}
