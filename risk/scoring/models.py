"""
Result types for password strength scoring.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple


@dataclass(frozen=True)
class RankTier:
    """One of the ordered rank tiers a score maps onto."""

    name: str
    label: str
    min_score: int
    color: str


# Highest tier first; the first tier whose lower bound is met wins.
RANK_TIERS: Tuple[RankTier, ...] = (
    RankTier("GODMODE", "🦄 GODMODE", 850, "#ff00ff"),
    RankTier("ELITE", "🔥 ELITE", 700, "#ff4444"),
    RankTier("DIAMOND", "💎 DIAMOND", 550, "#00cfff"),
    RankTier("PLATINUM", "👑 PLATINUM", 400, "#e5e4e2"),
    RankTier("GOLD", "⭐ GOLD", 250, "#ffd700"),
    RankTier("SILVER", "⚪ SILVER", 120, "#c0c0c0"),
    RankTier("BRONZE", "🕐 BRONZE", 50, "#cd7f32"),
    RankTier("DEAD", "🪦 DEAD", 0, "#555"),
)

LOWEST_TIER = RANK_TIERS[-1]


def rank_for_score(score: int) -> RankTier:
    """
    Map a clamped score onto its rank tier.

    Args:
        score: Score in [0, 1000]

    Returns:
        Tier with the greatest lower bound not exceeding the score
    """
    for tier in RANK_TIERS:
        if score >= tier.min_score:
            return tier
    return LOWEST_TIER


@dataclass(frozen=True)
class PasswordAssessment:
    """
    Outcome of scoring a single password.

    Attributes:
        score: Strength score clamped to [0, 1000]
        rank: Tier derived from the score
        crack_estimate: Human readable brute-force duration
        flags: Weakness pattern identifiers, no duplicates
        details: Read-only diagnostic measurements (length, char_type_count,
            entropy_bits, word_count), each only when meaningful
    """

    score: int
    rank: RankTier
    crack_estimate: str
    flags: Tuple[str, ...] = ()
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags

    def to_dict(self) -> Dict[str, Any]:
        """Convert assessment to a JSON-serializable dictionary."""
        return {
            "score": self.score,
            "rank": self.rank.label,
            "color": self.rank.color,
            "crack": self.crack_estimate,
            "flags": list(self.flags),
            "details": dict(self.details),
        }
