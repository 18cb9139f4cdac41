"""
Unit tests for submission records.
"""

import pytest
from risk.submission import (
    DEFAULT_NAME,
    MAX_NAME_LENGTH,
    SubmissionRecord,
    assess_submission,
    sanitize_name,
)


class TestSanitizeName:
    """Tests for display name cleanup."""

    def test_keeps_word_characters(self):
        """Test allowed characters survive."""
        assert sanitize_name("  neo_the-one 2  ") == "neo_the-one 2"

    def test_strips_markup(self):
        """Test markup characters are removed."""
        assert sanitize_name("<script>x</script>") == "scriptxscript"

    def test_truncates(self):
        """Test length limit."""
        assert len(sanitize_name("a" * 100)) == MAX_NAME_LENGTH

    @pytest.mark.parametrize("name", ["", None, "!!!", "<>"])
    def test_fallback(self, name):
        """Test empty results fall back to the default name."""
        assert sanitize_name(name) == DEFAULT_NAME


class TestAssessSubmission:
    """Tests for merging assessment and classification."""

    def test_record_fields(self):
        """Test the flat record."""
        assessment, record = assess_submission("neo", "p4ssw0rd", "185.220.1.1")

        assert isinstance(record, SubmissionRecord)
        assert record.name == "neo"
        assert record.score == assessment.score
        assert record.rank == assessment.rank.label
        assert record.crack_estimate == assessment.crack_estimate
        assert record.source_ip == "185.220.1.1"
        assert record.geo_label == "TOR"
        assert record.risk_level == "CRITICAL"

    def test_to_dict(self):
        """Test serialized record."""
        _, record = assess_submission("neo", "hunter2", "10.0.0.1")
        data = record.to_dict()

        assert data["geo"] == "LAN"
        assert data["risk"] == "CLEAN"
        assert data["ip"] == "10.0.0.1"
        assert "ts" not in data
