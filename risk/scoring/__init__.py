"""
Password strength scoring.
"""

from risk.scoring.models import RANK_TIERS, PasswordAssessment, RankTier, rank_for_score
from risk.scoring.password_scorer import score_password

__all__ = [
    "RANK_TIERS",
    "PasswordAssessment",
    "RankTier",
    "rank_for_score",
    "score_password",
]
