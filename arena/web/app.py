"""
Flask application for Password Arena.

Wires the risk engine into HTTP routes: every request passes the gate chain
(ban list, rate limiter, honeypot traps) before routing; submissions are
scored, classified, stored and broadcast to live observers.
"""

import hmac
import uuid
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from functools import wraps
from typing import Any, Dict, Optional

from flask import Flask, Response, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from arena.broadcast.events import alert_event, ban_event, submission_event
from arena.broadcast.hub import BroadcastHub
from arena.config.config_loader import Config, get_config
from arena.gates.rate_limiter import RateLimiter
from arena.gates.trap_detector import TrapDetector
from arena.logging.logger import create_request_logger, get_arena_logger
from arena.metrics.prometheus_exporter import ArenaMetrics, get_metrics
from arena.web.observers import StreamObserver
from risk.classification.ip_classifier import classify_ip
from risk.submission import assess_submission, sanitize_name
from storage.arena_store import ArenaStore, DEFAULT_BAN_REASON

FALLBACK_IP = "0.0.0.0"
BACKGROUND_WORKERS = 2

FLAGS = {
    "/flag1": ("Flag 1 found!", "FLAG{hidden_endpoint_1}"),
    "/flag2": ("Flag 2 found!", "FLAG{multi_endpoint_hunter}"),
}


@dataclass
class ArenaServices:
    """Collaborators shared by all requests of one app instance."""

    config: Config
    store: ArenaStore
    hub: BroadcastHub
    rate_limiter: RateLimiter
    traps: TrapDetector
    metrics: ArenaMetrics
    background: Executor


def services() -> ArenaServices:
    return current_app.extensions["arena"]


def client_ip(req, trust_proxy: bool = True) -> str:
    """
    Resolve the client address of a request.

    Args:
        req: Flask request
        trust_proxy: Honor X-Forwarded-For and X-Real-IP

    Returns:
        First forwarded address, the real-ip header, the socket peer, or
        0.0.0.0 when none is known
    """
    if trust_proxy:
        forwarded = req.headers.get("X-Forwarded-For", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
        real_ip = req.headers.get("X-Real-IP")
        if real_ip:
            return real_ip
    return req.remote_addr or FALLBACK_IP


def error(message: str, status: int = 200) -> Response:
    response = jsonify({"ok": False, "error": message})
    response.status_code = status
    return response


def admin_only(view):
    """Reject requests without the shared admin token."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        expected = services().config.web.admin_password
        supplied = request.headers.get("X-Admin-Token") or request.args.get("token") or ""
        if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
            g.log.warning("Rejected admin request", extra={"event_type": "admin_unauthorized"})
            return error("Unauthorized", 401)
        return view(*args, **kwargs)

    return wrapper


def _write_request_log(svc: ArenaServices, log, ip, method, path, user_agent) -> None:
    """Persist one request log entry; runs on the background executor."""
    try:
        svc.store.log_request(ip, method, path, user_agent)
    except SQLAlchemyError as e:
        svc.metrics.record_store_error("log_request")
        log.warning(f"Request log write failed: {e}")
    except Exception as e:
        svc.metrics.record_store_error("log_request")
        log.error(f"Unexpected request log failure: {e}", exc_info=True)


def _payload() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def create_app(
    config: Optional[Config] = None,
    store: Optional[ArenaStore] = None,
    hub: Optional[BroadcastHub] = None,
    rate_limiter: Optional[RateLimiter] = None,
    metrics: Optional[ArenaMetrics] = None,
    background: Optional[Executor] = None,
) -> Flask:
    """
    Build the Flask application.

    Collaborators not supplied are built from configuration.

    Args:
        config: Application configuration
        store: Persistence store
        hub: Broadcast hub for live observers
        rate_limiter: Per-address rate limiter
        metrics: Prometheus metrics
        background: Executor for request log writes; the caller shuts it
            down (see ArenaServer.stop)

    Returns:
        Configured Flask app
    """
    config = config or get_config()
    metrics = metrics or get_metrics()
    if store is None:
        store = ArenaStore.from_config(config.database)
        store.create_tables()
    hub = hub or BroadcastHub(metrics=metrics)
    rate_limiter = rate_limiter or RateLimiter.from_config(config.rate_limit)
    background = background or ThreadPoolExecutor(
        max_workers=BACKGROUND_WORKERS, thread_name_prefix="arena-request-log"
    )

    app = Flask(__name__)
    app.config["SECRET_KEY"] = str(uuid.uuid4())
    app.extensions["arena"] = ArenaServices(
        config=config,
        store=store,
        hub=hub,
        rate_limiter=rate_limiter,
        traps=TrapDetector(hub, metrics=metrics),
        metrics=metrics,
        background=background,
    )

    logger = get_arena_logger(
        "web", level=config.logging.level, log_format=config.logging.format
    )

    @app.before_request
    def gate_request():
        svc = services()
        ip = client_ip(request, svc.config.web.trust_proxy)
        g.client_ip = ip
        g.geo = classify_ip(ip)
        g.log = create_request_logger(logger, str(uuid.uuid4()), ip)

        svc.background.submit(
            _write_request_log,
            svc,
            g.log,
            ip,
            request.method,
            request.path,
            request.headers.get("User-Agent"),
        )

        try:
            banned = svc.store.is_banned(ip)
        except SQLAlchemyError as e:
            svc.metrics.record_store_error("ban_check")
            g.log.warning(f"Ban list lookup failed: {e}")
            banned = False

        if banned:
            svc.metrics.record_gate_rejection("banned")
            g.log.info("Rejected banned address", extra={"event_type": "banned"})
            response = jsonify({"ok": False, "error": "Banned", "ip": ip})
            response.status_code = 403
            return response

        limited = svc.rate_limiter.observe(ip)
        svc.metrics.set_rate_limit_keys(svc.rate_limiter.tracked_keys)
        if limited:
            svc.metrics.record_gate_rejection("rate_limited")
            g.log.info("Rate limited", extra={"event_type": "rate_limited"})
            return error("Rate limited", 429)

        if svc.traps.check(request.path, ip):
            svc.metrics.record_gate_rejection("honeypot")
            return error("Forbidden", 403)

        return None

    @app.after_request
    def record_request(response):
        services().metrics.record_request(request.method, response.status_code)
        return response

    @app.errorhandler(404)
    def not_found(_exc):
        return jsonify({"error": "Not found"}), 404

    @app.route("/api/health", methods=["GET"])
    def health():
        svc = services()
        return jsonify({
            "ok": True,
            "app": svc.config.app.app_name,
            "observers": svc.hub.observer_count,
        })

    @app.route("/submit", methods=["POST"])
    def submit():
        svc = services()
        data = _payload()
        name = data.get("name")
        password = data.get("password")

        if name is None or not str(name).strip():
            return error("Name required")
        if password is None or not str(password):
            return error("Password required")

        assessment, record = assess_submission(
            sanitize_name(str(name)), str(password), g.client_ip
        )

        try:
            svc.store.add_submission(record)
        except SQLAlchemyError as e:
            svc.metrics.record_store_error("add_submission")
            g.log.error(f"Failed to store submission: {e}")
            return error(str(e))

        svc.metrics.record_submission(
            assessment.rank.name, record.risk_level, assessment.score
        )
        g.log.info(
            f"Scored submission from {record.name}: {assessment.score}",
            extra={"event_type": "submission", "component": "web"},
        )
        svc.hub.publish(submission_event(record))

        return jsonify({"ok": True, **assessment.to_dict()})

    @app.route("/api/leaderboard", methods=["GET"])
    def leaderboard():
        try:
            rows = services().store.leaderboard()
        except SQLAlchemyError as e:
            g.log.warning(f"Leaderboard query failed: {e}")
            return jsonify({"ok": False, "rows": []})
        return jsonify({"ok": True, "rows": rows})

    @app.route("/api/stream", methods=["GET"])
    def stream():
        hub = services().hub
        observer = StreamObserver()
        handle = hub.register(observer)

        def generate():
            try:
                yield from observer.stream()
            finally:
                observer.close()
                hub.unregister(handle)

        return Response(
            generate(),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    @app.route("/flag1", methods=["GET"])
    @app.route("/flag2", methods=["GET"])
    def flag():
        message, value = FLAGS[request.path]
        services().hub.publish(alert_event(message, g.client_ip))
        return jsonify({"flag": value})

    # Admin

    @app.route("/api/admin/data", methods=["GET"])
    @admin_only
    def admin_data():
        try:
            snapshot = services().store.admin_snapshot()
        except SQLAlchemyError as e:
            return error(str(e))
        return jsonify({"ok": True, **snapshot})

    @app.route("/api/admin/ban", methods=["POST"])
    @admin_only
    def admin_ban():
        svc = services()
        data = _payload()
        ip = data.get("ip")
        if not ip:
            return error("IP required")
        reason = data.get("reason") or DEFAULT_BAN_REASON

        try:
            svc.store.ban(ip, reason)
        except SQLAlchemyError as e:
            return error(str(e))

        g.log.info(f"Banned {ip}", extra={"event_type": "ban", "component": "admin"})
        svc.hub.publish(ban_event(ip, reason))
        return jsonify({"ok": True})

    @app.route("/api/admin/unban", methods=["POST"])
    @admin_only
    def admin_unban():
        ip = _payload().get("ip")
        if not ip:
            return error("IP required")
        try:
            services().store.unban(ip)
        except SQLAlchemyError as e:
            return error(str(e))
        return jsonify({"ok": True})

    @app.route("/api/admin/delete", methods=["POST"])
    @admin_only
    def admin_delete():
        try:
            submission_id = int(_payload().get("id"))
        except (TypeError, ValueError):
            return error("Submission id required")
        try:
            services().store.delete_submission(submission_id)
        except SQLAlchemyError as e:
            return error(str(e))
        return jsonify({"ok": True})

    return app
