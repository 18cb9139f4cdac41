"""
Risk & scoring engine.

Pure, stateless assessments: password strength scoring and IP threat
classification.
"""

from risk.classification.ip_classifier import classify_ip
from risk.scoring.password_scorer import score_password

__all__ = ["classify_ip", "score_password"]
