"""
IP threat classification.
"""

from risk.classification.ip_classifier import PREFIX_RULES, classify_ip
from risk.classification.models import IPClassification, PrefixRule, RiskLevel

__all__ = [
    "IPClassification",
    "PREFIX_RULES",
    "PrefixRule",
    "RiskLevel",
    "classify_ip",
]
