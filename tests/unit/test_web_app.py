"""
Unit tests for the Flask application and its gate chain.
"""

import json
import threading
import time
import pytest
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from unittest.mock import ANY, Mock
from prometheus_client import CollectorRegistry
from sqlalchemy.exc import OperationalError
from arena.broadcast.hub import BroadcastHub
from arena.config.config_loader import Config
from arena.gates.rate_limiter import RateLimiter
from arena.metrics.prometheus_exporter import ArenaMetrics
from arena.web.app import client_ip, create_app
from storage.arena_store import ArenaStore

ADMIN = {"X-Admin-Token": "s3cret"}


class InlineExecutor(Executor):
    """Runs submitted work immediately so request log writes are visible."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class FakeConnection:
    """Observer connection that records decoded messages."""

    def __init__(self):
        self.closed = False
        self.messages = []

    def send(self, message: str) -> None:
        self.messages.append(json.loads(message))

    def of_type(self, kind: str):
        return [m for m in self.messages if m["type"] == kind]


@pytest.fixture
def config():
    config = Config()
    config.web.admin_password = "s3cret"
    return config


@pytest.fixture
def store():
    store = ArenaStore("sqlite://")
    store.create_tables()
    yield store
    store.close()


@pytest.fixture
def hub():
    return BroadcastHub()


@pytest.fixture
def observer(hub):
    conn = FakeConnection()
    hub.register(conn)
    return conn


@pytest.fixture
def metrics():
    return ArenaMetrics(registry=CollectorRegistry())


def build_client(
    config, store, hub, metrics, max_requests=1000, background=None
):
    app = create_app(
        config=config,
        store=store,
        hub=hub,
        rate_limiter=RateLimiter(window_seconds=60, max_requests=max_requests),
        metrics=metrics,
        background=background or InlineExecutor(),
    )
    app.testing = True
    return app.test_client()


@pytest.fixture
def client(config, store, hub, metrics):
    return build_client(config, store, hub, metrics)


class TestClientIp:
    """Tests for client address resolution."""

    class Req:
        def __init__(self, headers, remote_addr="127.0.0.1"):
            self.headers = headers
            self.remote_addr = remote_addr

    def test_forwarded_first_entry(self):
        """Test the first X-Forwarded-For entry wins."""
        req = self.Req({"X-Forwarded-For": " 1.2.3.4 , 10.0.0.1"})
        assert client_ip(req) == "1.2.3.4"

    def test_real_ip(self):
        """Test X-Real-IP fallback."""
        req = self.Req({"X-Real-IP": "5.6.7.8"})
        assert client_ip(req) == "5.6.7.8"

    def test_untrusted_proxy(self):
        """Test headers are ignored when proxies are not trusted."""
        req = self.Req({"X-Forwarded-For": "1.2.3.4"})
        assert client_ip(req, trust_proxy=False) == "127.0.0.1"

    def test_fallback(self):
        """Test unknown peer."""
        assert client_ip(self.Req({}, remote_addr=None)) == "0.0.0.0"


class TestSubmit:
    """Tests for POST /submit."""

    def test_scored_submission(self, client, observer):
        """Test a submission is scored, stored and broadcast."""
        response = client.post(
            "/submit",
            json={"name": "neo", "password": "correct-horse-battery-staple"},
            headers={"X-Forwarded-For": "185.220.1.1"},
        )
        data = response.get_json()

        assert response.status_code == 200
        assert data["ok"] is True
        assert data["score"] == 515
        assert data["crack"]
        assert data["details"]["word_count"] == 4

        events = observer.of_type("submission")
        assert len(events) == 1
        assert events[0]["name"] == "neo"
        assert events[0]["geo"] == "TOR"
        assert events[0]["risk"] == "CRITICAL"
        assert "crack" not in events[0]
        assert "password" not in events[0]

    def test_form_payload(self, client):
        """Test form-encoded submissions."""
        response = client.post("/submit", data={"name": "neo", "password": "hunter2"})
        assert response.get_json()["ok"] is True

    def test_name_required(self, client, observer):
        """Test missing name."""
        response = client.post("/submit", json={"name": "  ", "password": "x"})

        assert response.get_json() == {"ok": False, "error": "Name required"}
        assert observer.of_type("submission") == []

    def test_password_required(self, client):
        """Test missing password."""
        response = client.post("/submit", json={"name": "neo", "password": ""})
        assert response.get_json() == {"ok": False, "error": "Password required"}

    def test_leaderboard(self, client):
        """Test stored submissions show on the leaderboard."""
        client.post("/submit", json={"name": "weak", "password": "password"})
        client.post(
            "/submit", json={"name": "strong", "password": "correct-horse-battery-staple"}
        )

        rows = client.get("/api/leaderboard").get_json()["rows"]

        assert [r["name"] for r in rows] == ["strong", "weak"]
        assert "ip" not in rows[0]


class TestGates:
    """Tests for the before-request gate chain."""

    def test_trap_path(self, client, observer):
        """Test honeypot paths are rejected with one alert."""
        response = client.get("/.env", headers={"X-Forwarded-For": "9.9.9.9"})

        assert response.status_code == 403
        assert response.get_json()["error"] == "Forbidden"
        alerts = observer.of_type("alert")
        assert len(alerts) == 1
        assert alerts[0]["msg"] == "Honeypot: /.env"
        assert alerts[0]["ip"] == "9.9.9.9"

    def test_ordinary_path_no_alert(self, client, observer):
        """Test normal requests raise no alert."""
        client.get("/api/leaderboard")
        assert observer.of_type("alert") == []

    def test_rate_limit(self, config, store, hub, metrics):
        """Test requests beyond the limit get 429."""
        client = build_client(config, store, hub, metrics, max_requests=3)

        statuses = [client.get("/api/health").status_code for _ in range(4)]

        assert statuses == [200, 200, 200, 429]
        assert client.get(
            "/api/health", headers={"X-Forwarded-For": "5.5.5.5"}
        ).status_code == 200

    def test_banned_address(self, client, store):
        """Test banned addresses are rejected before anything else."""
        store.ban("6.6.6.6", "spam")

        response = client.get("/.env", headers={"X-Forwarded-For": "6.6.6.6"})

        assert response.status_code == 403
        assert response.get_json() == {"ok": False, "error": "Banned", "ip": "6.6.6.6"}

    def test_requests_are_logged(self, client, store):
        """Test every request lands in the request log."""
        client.get("/api/health", headers={"User-Agent": "health-check"})

        logs = store.admin_snapshot()["logs"]
        assert logs[0]["path"] == "/api/health"
        assert logs[0]["ua"] == "health-check"

    def test_store_failures_do_not_block(self, config, hub, metrics):
        """Test a failing store never changes the gate decision."""
        broken = Mock()
        broken.log_request.side_effect = OperationalError(
            "INSERT INTO req_log", {}, Exception("database is locked")
        )
        broken.is_banned.side_effect = OperationalError(
            "SELECT banned_ips", {}, Exception("database is locked")
        )
        broken.leaderboard.return_value = []
        client = build_client(config, broken, hub, metrics)

        response = client.get("/api/leaderboard")

        assert response.status_code == 200
        assert response.get_json() == {"ok": True, "rows": []}
        for operation in ("log_request", "ban_check"):
            assert metrics.registry.get_sample_value(
                "arena_store_errors_total", {"operation": operation}
            ) == 1.0

    def test_request_log_written_in_background(self, config, hub, metrics):
        """Test the gate chain does not wait for the request log write."""
        release = threading.Event()
        slow = Mock()
        slow.log_request.side_effect = lambda *args: release.wait(5)
        slow.is_banned.return_value = False
        slow.leaderboard.return_value = []
        background = ThreadPoolExecutor(max_workers=1)
        client = build_client(config, slow, hub, metrics, background=background)

        try:
            started = time.perf_counter()
            response = client.get("/api/leaderboard")
            elapsed = time.perf_counter() - started

            assert response.status_code == 200
            assert elapsed < 2.5
        finally:
            release.set()
            background.shutdown(wait=True)

        slow.log_request.assert_called_once_with(
            "127.0.0.1", "GET", "/api/leaderboard", ANY
        )

    def test_not_found(self, client):
        """Test unknown routes."""
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Not found"}

    def test_metrics(self, client, metrics):
        """Test gate rejections are counted."""
        client.get("/phpmyadmin")

        assert metrics.registry.get_sample_value(
            "arena_gate_rejections_total", {"reason": "honeypot"}
        ) == 1.0


class TestFlags:
    """Tests for the hidden flag endpoints."""

    def test_flag1(self, client, observer):
        """Test flag discovery alerts observers."""
        response = client.get("/flag1")

        assert response.get_json() == {"flag": "FLAG{hidden_endpoint_1}"}
        assert observer.of_type("alert")[0]["msg"] == "Flag 1 found!"

    def test_flag2(self, client):
        """Test second flag."""
        assert client.get("/flag2").get_json() == {"flag": "FLAG{multi_endpoint_hunter}"}


class TestAdmin:
    """Tests for admin endpoints."""

    def test_unauthorized(self, client):
        """Test missing or wrong tokens are rejected."""
        assert client.get("/api/admin/data").status_code == 401
        assert client.get(
            "/api/admin/data", headers={"X-Admin-Token": "nope"}
        ).status_code == 401

    def test_query_token(self, client):
        """Test token in the query string."""
        assert client.get("/api/admin/data?token=s3cret").status_code == 200

    def test_data(self, client):
        """Test dashboard snapshot includes addresses."""
        client.post("/submit", json={"name": "neo", "password": "hunter2"})

        data = client.get("/api/admin/data", headers=ADMIN).get_json()

        assert data["ok"] is True
        assert data["stats"]["total"] == 1
        assert data["subs"][0]["ip"] == "127.0.0.1"

    def test_ban_broadcasts(self, client, observer, store):
        """Test banning publishes a ban event."""
        response = client.post(
            "/api/admin/ban", json={"ip": "6.6.6.6", "reason": "spam"}, headers=ADMIN
        )

        assert response.get_json() == {"ok": True}
        assert store.is_banned("6.6.6.6")
        bans = observer.of_type("ban")
        assert bans[0]["ip"] == "6.6.6.6"
        assert bans[0]["reason"] == "spam"

    def test_ban_requires_ip(self, client):
        """Test missing address."""
        response = client.post("/api/admin/ban", json={}, headers=ADMIN)
        assert response.get_json()["error"] == "IP required"

    def test_unban(self, client, store):
        """Test unban."""
        store.ban("6.6.6.6")

        client.post("/api/admin/unban", json={"ip": "6.6.6.6"}, headers=ADMIN)

        assert store.is_banned("6.6.6.6") is False

    def test_delete(self, client, store):
        """Test deleting a submission."""
        client.post("/submit", json={"name": "neo", "password": "hunter2"})

        response = client.post("/api/admin/delete", json={"id": 1}, headers=ADMIN)

        assert response.get_json() == {"ok": True}
        assert store.leaderboard() == []

    def test_delete_bad_id(self, client):
        """Test non-numeric ids."""
        response = client.post("/api/admin/delete", json={"id": "x"}, headers=ADMIN)
        assert response.get_json()["ok"] is False


class TestStream:
    """Tests for the Server-Sent Events endpoint."""

    def test_first_frame_is_welcome(self, client, hub):
        """Test new stream observers are greeted."""
        response = client.get("/api/stream", buffered=False)
        try:
            assert response.mimetype == "text/event-stream"
            first = next(response.iter_encoded()).decode("utf-8")

            assert first.startswith("data: ")
            assert json.loads(first[len("data: "):])["type"] == "welcome"
            assert hub.observer_count == 1
        finally:
            response.close()

    def test_health(self, client):
        """Test health endpoint."""
        data = client.get("/api/health").get_json()

        assert data["ok"] is True
        assert data["app"] == "Password Arena"
