# backend/floodwatch/services/alerts.py
from __future__ import annotations

import os
import logging
from typing import Iterable, List, Optional, Tuple

import boto3

from floodwatch.models.zone import DensityZone

log = logging.getLogger(__name__)

ALERT_TOPIC_ARN = os.getenv("ALERT_TOPIC_ARN", "").strip() or None
ALERT_MIN_COUNT = int(os.getenv("ALERT_MIN_COUNT", "5"))
REGION = os.getenv("AWS_REGION", "ap-southeast-1")

sns = boto3.client("sns", region_name=REGION)


# ----------------------------
# Formatters
# ----------------------------

def build_zone_alert_message(zone: DensityZone) -> str:
    lat, lng = zone.center.latitude, zone.center.longitude
    parts = [
        "FloodWatch alert",
        f"Dense SOS zone ({zone.tier})",
        f"Requests: {zone.count}",
        f"Center: {lat:.5f},{lng:.5f}",
        f"Radius: {zone.radius:.0f} m",
        f"Map: https://www.google.com/maps/search/?api=1&query={lat},{lng}",
    ]
    return " | ".join(parts)


# ----------------------------
# Decision helpers
# ----------------------------

def _is_alert_level(zone: Optional[DensityZone], min_count: int) -> bool:
    return zone is not None and zone.tier == "high" and zone.count >= min_count


def should_alert(
    prev_zone: Optional[DensityZone],
    zone: DensityZone,
    *,
    min_count: int = ALERT_MIN_COUNT,
) -> Tuple[bool, str]:
    """
    Fire only on the way up:
      - the cell is now high tier with >= min_count requests, and
      - it was not at that level before the change (absent, lower tier or fewer requests).
    A cell that stays high does not page again.

    Returns (decision, reason).
    """
    if not _is_alert_level(zone, min_count):
        return (False, "below_threshold")
    if prev_zone is None:
        return (True, "new_high")
    if _is_alert_level(prev_zone, min_count):
        return (False, "still_high")
    return (True, "crossed_up")


# ----------------------------
# Publishers
# ----------------------------

def publish_to_topic(topic_arn: str, message: str, *, subject: Optional[str] = None) -> str:
    resp = sns.publish(TopicArn=topic_arn, Message=message, Subject=subject or "FloodWatch Alert")
    return resp["MessageId"]


def alert_for_zones(
    changes: Iterable[Tuple[Optional[DensityZone], DensityZone]],
    *,
    topic_arn: Optional[str] = ALERT_TOPIC_ARN,
    min_count: int = ALERT_MIN_COUNT,
) -> List[str]:
    """
    `changes` pairs each current zone with the same cell's zone before the
    change (or None). Publishes one message per zone that just crossed up;
    returns the SNS MessageIds. Without a topic this is a no-op.
    """
    if not topic_arn:
        return []

    sent: List[str] = []
    for prev_zone, zone in changes:
        ok, reason = should_alert(prev_zone, zone, min_count=min_count)
        if not ok:
            continue
        msg_id = publish_to_topic(topic_arn, build_zone_alert_message(zone))
        log.info("Alert %s (%s) sent for zone at %s (%d requests)", msg_id, reason, zone.center, zone.count)
        sent.append(msg_id)
    return sent
