"""
IP threat classifier.

Tags a client address with a coarse network label (anonymity network, VPN,
cloud provider, private network) and a risk level using literal prefix
matching. No lookups are performed; the result depends only on the text of
the address.
"""

from typing import Optional, Sequence, Tuple

from risk.classification.models import IPClassification, PrefixRule, RiskLevel

UNKNOWN = IPClassification(label="Unknown", risk_level=RiskLevel.LOW)

# Evaluated in order, first match wins. Overlapping prefixes must keep the
# more specific entry first.
PREFIX_RULES: Tuple[PrefixRule, ...] = (
    PrefixRule("185.220.", "TOR", RiskLevel.CRITICAL),
    PrefixRule("199.249.", "TOR", RiskLevel.CRITICAL),
    PrefixRule("104.244.", "VPN", RiskLevel.HIGH),
    PrefixRule("13.", "AWS", RiskLevel.MEDIUM),
    PrefixRule("18.", "AWS", RiskLevel.MEDIUM),
    PrefixRule("52.", "AWS", RiskLevel.MEDIUM),
    PrefixRule("34.", "GCP", RiskLevel.MEDIUM),
    PrefixRule("35.", "GCP", RiskLevel.MEDIUM),
    PrefixRule("138.197.", "DO", RiskLevel.MEDIUM),
    PrefixRule("127.", "Local", RiskLevel.CLEAN),
    PrefixRule("10.", "LAN", RiskLevel.CLEAN),
    PrefixRule("192.168.", "LAN", RiskLevel.CLEAN),
    PrefixRule("::1", "Local", RiskLevel.CLEAN),
)


def classify_ip(
    ip: Optional[str], rules: Sequence[PrefixRule] = PREFIX_RULES
) -> IPClassification:
    """
    Classify an IP address by its textual prefix.

    Args:
        ip: Client address as received; empty or None is allowed
        rules: Ordered rule table, first match wins

    Returns:
        Classification of the first matching rule, or Unknown/LOW
    """
    if not ip:
        return UNKNOWN

    for rule in rules:
        if rule.matches(ip):
            return rule.classification()

    return UNKNOWN
