from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_principal
from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    alerts = container.alert_service

    @app.route("/api/alerts/my-alerts", methods=["GET"], endpoint="alerts_mine")
    @guards.user_required
    def alerts_mine():
        result = alerts.my_alerts(
            current_principal().id,
            is_read=request.args.get("is_read"),
            alert_type=request.args.get("type"),
            priority=request.args.get("priority"),
        )
        return ok(**result)

    @app.route("/api/alerts/mark-read/<int:alert_id>", methods=["PUT"], endpoint="alerts_mark_read")
    @guards.user_required
    def alerts_mark_read(alert_id: int):
        alert = alerts.mark_read(alert_id, user_id=current_principal().id)
        return ok(message="Alert marked as read", alert=alert)

    @app.route("/api/alerts/mark-all-read", methods=["PUT"], endpoint="alerts_mark_all_read")
    @guards.user_required
    def alerts_mark_all_read():
        count = alerts.mark_all_read(current_principal().id)
        return ok(message=f"{count} alerts marked as read", modified_count=count)

    @app.route("/api/alerts/delete/<int:alert_id>", methods=["DELETE"], endpoint="alerts_delete")
    @guards.token_required
    def alerts_delete(alert_id: int):
        principal = current_principal()
        alerts.delete(alert_id, user_id=principal.user_id, is_admin=principal.is_admin)
        return ok(message="Alert deleted successfully")

    @app.route("/api/alerts/create", methods=["POST"], endpoint="alerts_create")
    @guards.admin_required
    def alerts_create():
        alert = alerts.create(json_body())
        return ok(201, message="Alert created successfully", alert=alert)

    @app.route("/api/alerts/broadcast", methods=["POST"], endpoint="alerts_broadcast")
    @guards.admin_required
    def alerts_broadcast():
        result = alerts.broadcast(json_body())
        return ok(201, message=f"Broadcast sent to {result['alerts_created']} users", **result)

    @app.route("/api/alerts/admin/all", methods=["GET"], endpoint="alerts_admin_all")
    @guards.admin_required
    def alerts_admin_all():
        return ok(**alerts.admin_all(request.args))

    @app.route("/api/alerts/admin/statistics", methods=["GET"], endpoint="alerts_admin_statistics")
    @guards.admin_required
    def alerts_admin_statistics():
        return ok(stats=alerts.statistics(request.args.get("days", 7)))

    @app.route("/api/alerts/admin/cleanup-expired", methods=["DELETE"], endpoint="alerts_cleanup_expired")
    @guards.admin_required
    def alerts_cleanup_expired():
        deleted = alerts.cleanup_expired()
        return ok(message=f"{deleted} expired alerts cleaned up", deleted_count=deleted)

    @app.route("/api/alerts/admin/bulk-action", methods=["PUT"], endpoint="alerts_bulk_action")
    @guards.admin_required
    def alerts_bulk_action():
        body = json_body()
        action = body.get("action")
        affected = alerts.bulk_action(body.get("alert_ids"), action)
        return ok(message=f"Bulk {action} completed", affected_count=affected)
