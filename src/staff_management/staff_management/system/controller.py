from __future__ import annotations

import logging
import time
from collections import defaultdict

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from ..common.datetime_utils import now_local
from ..common.rounding import round_half_up
from ..common.serialization import to_json
from ..container import Container
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)

SERVICE_NAME = "Staff Management API"


def register(app: Flask, container: Container) -> None:
    started = time.monotonic()
    debug = container.settings.debug

    @app.route("/api/health", methods=["GET"], endpoint="system_health")
    def system_health():
        database = "connected" if container.conn.ping() else "disconnected"
        return jsonify(
            {
                "success": True,
                "status": "OK" if database == "connected" else "DEGRADED",
                "timestamp": now_local().isoformat(),
                "database": database,
                "environment": container.settings.environment,
                "uptime": round_half_up(time.monotonic() - started, 1),
                "service": SERVICE_NAME,
            }
        )

    @app.route("/api", methods=["GET"], endpoint="system_index")
    def system_index():
        groups = defaultdict(list)
        for rule in app.url_map.iter_rules():
            if not rule.rule.startswith("/api/"):
                continue
            section = rule.rule.split("/")[2]
            methods = sorted(m for m in rule.methods if m not in ("HEAD", "OPTIONS"))
            groups[section].append(f"{','.join(methods)} {rule.rule}")
        return jsonify(
            {
                "success": True,
                "service": SERVICE_NAME,
                "endpoints": {name: sorted(routes) for name, routes in sorted(groups.items())},
            }
        )

    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        body = {"success": False, "message": exc.message}
        body.update(to_json(exc.details))
        return jsonify(body), exc.status_code

    @app.errorhandler(404)
    def handle_not_found(_exc):
        return jsonify({"success": False, "message": "Route not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(_exc):
        return jsonify({"success": False, "message": "Method not allowed"}), 405

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"success": False, "message": exc.description}), exc.code
        logger.exception("Unhandled error")
        body = {"success": False, "message": "Internal server error"}
        if debug:
            body["error"] = str(exc)
        return jsonify(body), 500
