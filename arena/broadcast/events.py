"""
Events pushed to connected observers.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class EventKind(Enum):
    """Kinds of broadcast events."""

    SUBMISSION = "submission"
    BAN = "ban"
    ALERT = "alert"
    WELCOME = "welcome"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class BroadcastEvent:
    """
    A single event for fan-out.

    Serialized as a flat JSON object: ``type``, the payload fields, and
    ``ts`` (ISO8601, UTC). Welcome events carry no payload.
    """

    kind: EventKind
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.kind.value}
        data.update(self.payload)
        data["ts"] = self.timestamp.isoformat().replace("+00:00", "Z")
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


def submission_event(record) -> BroadcastEvent:
    """
    Build a submission event from a SubmissionRecord.

    The crack estimate stays out of the public feed.
    """
    payload = record.to_dict()
    payload.pop("crack", None)
    return BroadcastEvent(EventKind.SUBMISSION, payload)


def ban_event(ip: str, reason: str) -> BroadcastEvent:
    return BroadcastEvent(EventKind.BAN, {"ip": ip, "reason": reason})


def alert_event(message: str, ip: Optional[str]) -> BroadcastEvent:
    return BroadcastEvent(EventKind.ALERT, {"msg": message, "ip": ip})


def welcome_event() -> BroadcastEvent:
    return BroadcastEvent(EventKind.WELCOME)
