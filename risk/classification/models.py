"""
Result types for IP threat classification.
"""

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import Any, Dict


@total_ordering
class RiskLevel(Enum):
    """Ordered risk levels, least to most severe."""

    CLEAN = "CLEAN"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def severity(self) -> int:
        """Position in the CLEAN..CRITICAL ordering."""
        return list(RiskLevel).index(self)

    def __lt__(self, other: "RiskLevel") -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.severity < other.severity


@dataclass(frozen=True)
class IPClassification:
    """Network label and risk level derived from an address prefix."""

    label: str
    risk_level: RiskLevel

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "risk": self.risk_level.value}


@dataclass(frozen=True)
class PrefixRule:
    """Classification returned for addresses starting with ``prefix``."""

    prefix: str
    label: str
    risk_level: RiskLevel

    def matches(self, ip: str) -> bool:
        return ip.startswith(self.prefix)

    def classification(self) -> IPClassification:
        return IPClassification(label=self.label, risk_level=self.risk_level)
