"""
Database models for Password Arena using SQLAlchemy ORM.

Submissions, the ban list and the raw request log.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() + "Z" if value else None


class Submission(Base):
    """A scored password submission. The password itself is never stored."""

    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    score = Column(Integer, nullable=False, index=True)
    rank = Column(String(50))
    crack = Column(String(50))
    ip = Column(String(45), index=True)
    geo = Column(String(50))
    risk = Column(String(20))
    ts = Column(DateTime, nullable=False, default=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "score": self.score,
            "rank": self.rank,
            "crack": self.crack,
            "ip": self.ip,
            "geo": self.geo,
            "risk": self.risk,
            "ts": _isoformat(self.ts),
        }

    def __repr__(self) -> str:
        return f"<Submission {self.id} {self.name}:{self.score}>"


class BannedIP(Base):
    """An address rejected before any other gate runs."""

    __tablename__ = "banned_ips"

    ip = Column(String(45), primary_key=True)
    reason = Column(Text)
    ts = Column(DateTime, nullable=False, default=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {"ip": self.ip, "reason": self.reason, "ts": _isoformat(self.ts)}

    def __repr__(self) -> str:
        return f"<BannedIP {self.ip}>"


class RequestLog(Base):
    """One inbound request as seen by the gate chain."""

    __tablename__ = "req_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ip = Column(String(45))
    method = Column(String(10))
    path = Column(String(500))
    ua = Column(String(200))
    ts = Column(DateTime, nullable=False, default=_utcnow)

    __table_args__ = (Index("idx_req_log_ip_ts", "ip", "ts"),)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ip": self.ip,
            "method": self.method,
            "path": self.path,
            "ua": self.ua,
            "ts": _isoformat(self.ts),
        }
