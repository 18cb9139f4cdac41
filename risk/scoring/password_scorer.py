"""
Heuristic password strength scorer.

Scores a password on a 0-1000 scale by accumulating bonuses for length,
character variety and entropy, and penalties for dictionary words, leetspeak
variants of dictionary words and well-known weak patterns.
"""

import math
import re
from typing import Any, Dict, List, Optional, Tuple

from risk.scoring.models import LOWEST_TIER, PasswordAssessment, rank_for_score

MIN_SCORE = 0
MAX_SCORE = 1000

COMMON_PASSWORDS = frozenset({
    "password", "123456", "12345678", "qwerty", "abc123", "monkey", "letmein",
    "trustno1", "dragon", "baseball", "iloveyou", "master", "sunshine",
    "passw0rd", "shadow", "123123", "654321", "superman", "qazwsx", "football",
    "password1", "password123", "admin", "welcome", "login", "hello", "111111",
    "000000", "root", "admin123", "qwerty123", "princess",
})

LEET_SUBSTITUTIONS: Tuple[Tuple[str, str], ...] = (
    ("0", "o"),
    ("1", "i"),
    ("3", "e"),
    ("4", "a"),
    ("5", "s"),
    ("@", "a"),
    ("$", "s"),
    ("7", "t"),
)

KEYBOARD_ROWS = ("qwertyuiop", "asdfghjkl", "zxcvbnm", "1234567890")
KEYBOARD_WINDOW = 4
KEYBOARD_WINDOW_PENALTY = 20

# (pattern, points, flag); applied to the raw password
WEAK_PATTERNS: Tuple[Tuple[re.Pattern, int, str], ...] = (
    (re.compile(r"password", re.IGNORECASE), -180, "CONTAINS_PASSWORD"),
    (re.compile(r"^(?:admin|root)\Z", re.IGNORECASE), -200, "IS_ADMIN_ROOT"),
    (re.compile(r"^[0-9]+\Z"), -80, "DIGITS_ONLY"),
    (re.compile(r"^[a-zA-Z]+\Z"), -50, "LETTERS_ONLY"),
    (re.compile(r"(.)\1{3,}"), -100, "REPEATED_CHARS"),
    (re.compile(r"12345"), -60, "SEQ_DIGITS"),
    (re.compile(r"qwerty", re.IGNORECASE), -80, "KEYBOARD_WALK"),
    (re.compile(r"iloveyou", re.IGNORECASE), -100, "ILOVEYOU"),
)

_LOWER = re.compile(r"[a-z]")
_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"[0-9]")
_SYMBOL = re.compile(r"""[!@#$%^&*()\-_=+\[\]{};':"\\|,.<>/?`~]""")
_NON_ASCII = re.compile(r"[^\x00-\x7F]")
_WORD_SEPARATORS = re.compile(r"[\s_\-]+")

# (upper bound in seconds, divisor, suffix)
CRACK_TIME_BUCKETS: Tuple[Tuple[float, float, str], ...] = (
    (60, 1, "s"),
    (3600, 60, "m"),
    (86400, 3600, "h"),
    (2592000, 86400, "d"),
    (3.15e7, 2592000, "mo"),
    (3.15e9, 3.15e7, "yr"),
)
GUESSES_PER_SECOND = 1e10


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _length_bonus(length: int) -> int:
    if length >= 25:
        return 180
    if length >= 20:
        return 140
    if length >= 16:
        return 100
    if length >= 12:
        return 70
    if length >= 8:
        return 40
    if length >= 6:
        return 20
    return length * 3


def leet_normalize(text: str) -> str:
    """
    Undo common leetspeak substitutions.

    Args:
        text: Lowercased password

    Returns:
        Text with digits and symbols mapped back to letters
    """
    for leet, letter in LEET_SUBSTITUTIONS:
        text = text.replace(leet, letter)
    return text


def keyboard_walk_penalty(lowered: str) -> int:
    """
    Sum the penalty for 4-character runs along a keyboard row.

    Only straight, left-to-right runs on the four fixed rows count.

    Args:
        lowered: Lowercased password

    Returns:
        Total penalty points (non-negative)
    """
    penalty = 0
    for row in KEYBOARD_ROWS:
        for i in range(len(lowered) - KEYBOARD_WINDOW + 1):
            if lowered[i:i + KEYBOARD_WINDOW] in row:
                penalty += KEYBOARD_WINDOW_PENALTY
    return penalty


def estimate_crack_time(
    length: int, lower: bool, upper: bool, digit: bool, symbol: bool
) -> str:
    """
    Estimate how long an exhaustive search would take.

    Args:
        length: Password length
        lower: Lowercase letters present
        upper: Uppercase letters present
        digit: Digits present
        symbol: Symbols present

    Returns:
        Bucketed duration such as "Instant", "42m", "3yr" or "1000+ yrs"
    """
    pool = 0
    if lower:
        pool += 26
    if upper:
        pool += 26
    if digit:
        pool += 10
    if symbol:
        pool += 32
    pool = max(pool, 2)

    try:
        seconds = float(pool) ** length / GUESSES_PER_SECOND
    except OverflowError:
        seconds = math.inf

    if seconds < 1:
        return "Instant"
    for limit, divisor, suffix in CRACK_TIME_BUCKETS:
        if seconds < limit:
            return f"{int(_round_half_up(seconds / divisor))}{suffix}"
    return "1000+ yrs"


def score_password(password: Optional[str]) -> PasswordAssessment:
    """
    Score a password.

    Never raises; an empty or missing password yields a zero score in the
    lowest tier.

    Args:
        password: Password exactly as submitted

    Returns:
        PasswordAssessment for the password
    """
    if not password:
        return PasswordAssessment(
            score=MIN_SCORE, rank=LOWEST_TIER, crack_estimate="Instant"
        )

    total = 0
    flags: List[str] = []
    details: Dict[str, Any] = {}
    length = len(password)
    lowered = password.lower()

    total += _length_bonus(length)
    details["length"] = length

    has_lower = bool(_LOWER.search(password))
    has_upper = bool(_UPPER.search(password))
    has_digit = bool(_DIGIT.search(password))
    has_symbol = bool(_SYMBOL.search(password))
    has_non_ascii = bool(_NON_ASCII.search(password))

    if has_lower:
        total += 10
    if has_upper:
        total += 20
    if has_digit:
        total += 20
    if has_symbol:
        total += 40
    if has_non_ascii:
        total += 30
    char_types = sum((has_lower, has_upper, has_digit, has_symbol, has_non_ascii))
    total += char_types * 15
    details["char_type_count"] = char_types

    if lowered in COMMON_PASSWORDS:
        total -= 350
        flags.append("COMMON_PASSWORD")

    normalized = leet_normalize(lowered)
    if normalized != lowered and normalized in COMMON_PASSWORDS:
        total -= 200
        flags.append("LEET_COMMON")

    for pattern, points, flag in WEAK_PATTERNS:
        if pattern.search(password):
            total += points
            flags.append(flag)

    walk_penalty = keyboard_walk_penalty(lowered)
    if walk_penalty > 0:
        total -= walk_penalty
        flags.append("KEYBOARD_PATTERN")

    entropy_bits = length * math.log2(max(len(set(password)), 2))
    total += math.floor(entropy_bits * 1.5)
    details["entropy_bits"] = _round_half_up(entropy_bits, 1)

    words = [w for w in _WORD_SEPARATORS.split(password) if len(w) > 1]
    if len(words) >= 4:
        total += len(words) * 25
        flags.append("PASSPHRASE")
        details["word_count"] = len(words)

    score = max(MIN_SCORE, min(MAX_SCORE, total))

    return PasswordAssessment(
        score=score,
        rank=rank_for_score(score),
        crack_estimate=estimate_crack_time(
            length, has_lower, has_upper, has_digit, has_symbol
        ),
        flags=tuple(flags),
        details=details,
    )
