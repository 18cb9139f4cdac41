"""
Unit tests for the honeypot trap detector.
"""

import pytest
from unittest.mock import Mock
from arena.gates.trap_detector import TRAP_PATHS, TrapDetector, is_trap


class TestIsTrap:
    """Tests for trap membership."""

    @pytest.mark.parametrize("path", sorted(TRAP_PATHS))
    def test_trap_paths(self, path):
        """Test every configured trap matches."""
        assert is_trap(path) is True

    @pytest.mark.parametrize(
        "path", ["/", "/submit", "/wp-admin/", "/WP-ADMIN", "/.env.bak", "/admin"]
    )
    def test_exact_match_only(self, path):
        """Test near misses are not traps."""
        assert is_trap(path) is False


class TestTrapDetector:
    """Tests for TrapDetector."""

    @pytest.fixture
    def hub(self):
        return Mock()

    @pytest.fixture
    def detector(self, hub):
        return TrapDetector(hub)

    def test_hit_publishes_one_alert(self, detector, hub):
        """Test a trap hit raises exactly one alert."""
        assert detector.check("/.env", "1.2.3.4") is True

        hub.publish.assert_called_once()
        event = hub.publish.call_args[0][0]
        data = event.to_dict()
        assert data["type"] == "alert"
        assert data["msg"] == "Honeypot: /.env"
        assert data["ip"] == "1.2.3.4"

    def test_each_hit_alerts(self, detector, hub):
        """Test repeated hits alert every time."""
        detector.check("/.env", "1.2.3.4")
        detector.check("/.env", "1.2.3.4")

        assert hub.publish.call_count == 2

    def test_miss_is_silent(self, detector, hub):
        """Test ordinary paths publish nothing."""
        assert detector.check("/api/leaderboard", "1.2.3.4") is False
        hub.publish.assert_not_called()

    def test_metrics_recorded(self, hub):
        """Test hit counter."""
        metrics = Mock()
        detector = TrapDetector(hub, metrics=metrics)

        detector.check("/phpmyadmin", "1.2.3.4")

        metrics.record_honeypot_hit.assert_called_once_with("/phpmyadmin")
