"""
Submission records handed to the persistence layer and the broadcast hub.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from risk.classification.ip_classifier import classify_ip
from risk.classification.models import IPClassification
from risk.scoring.models import PasswordAssessment
from risk.scoring.password_scorer import score_password

MAX_NAME_LENGTH = 30
DEFAULT_NAME = "Anonymous"

_NAME_DISALLOWED = re.compile(r"[^\w\s\-]", re.ASCII)


def sanitize_name(name: Optional[str]) -> str:
    """
    Clean a display name for storage and broadcast.

    Keeps ASCII word characters, whitespace and hyphens, truncated to
    MAX_NAME_LENGTH characters.

    Args:
        name: Raw display name

    Returns:
        Sanitized name, or DEFAULT_NAME when nothing is left
    """
    cleaned = _NAME_DISALLOWED.sub("", (name or "").strip())[:MAX_NAME_LENGTH]
    return cleaned or DEFAULT_NAME


@dataclass(frozen=True)
class SubmissionRecord:
    """Flat record of one scored submission; the store assigns the timestamp."""

    name: str
    score: int
    rank: str
    crack_estimate: str
    source_ip: str
    geo_label: str
    risk_level: str

    @classmethod
    def from_results(
        cls,
        name: str,
        source_ip: str,
        assessment: PasswordAssessment,
        classification: IPClassification,
    ) -> "SubmissionRecord":
        return cls(
            name=name,
            score=assessment.score,
            rank=assessment.rank.label,
            crack_estimate=assessment.crack_estimate,
            source_ip=source_ip,
            geo_label=classification.label,
            risk_level=classification.risk_level.value,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score,
            "rank": self.rank,
            "crack": self.crack_estimate,
            "ip": self.source_ip,
            "geo": self.geo_label,
            "risk": self.risk_level,
        }


def assess_submission(
    name: str, password: Optional[str], source_ip: str
) -> tuple[PasswordAssessment, SubmissionRecord]:
    """
    Score a password and classify its source in one step.

    Args:
        name: Already sanitized display name
        password: Password exactly as submitted
        source_ip: Client address

    Returns:
        Tuple of (assessment, submission record)
    """
    assessment = score_password(password)
    classification = classify_ip(source_ip)
    record = SubmissionRecord.from_results(name, source_ip, assessment, classification)
    return assessment, record
