from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_principal
from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    verification = container.verification_service

    @app.route("/api/verification/create-team", methods=["POST"], endpoint="verification_create_team")
    @guards.admin_required
    def verification_create_team():
        team = verification.create_team(json_body(), created_by=current_principal().id)
        return ok(message="Secret verification team created successfully", team=team)

    @app.route("/api/verification/assign-verification", methods=["POST"], endpoint="verification_assign")
    @guards.admin_required
    def verification_assign():
        result = verification.assign(json_body().get("task_id"))
        return ok(message="Verification assigned to secret team", verification=result)

    @app.route("/api/verification/my-tasks", methods=["GET"], endpoint="verification_my_tasks")
    @guards.user_required
    def verification_my_tasks():
        return ok(**verification.my_tasks(current_principal().id, status=request.args.get("status")))

    @app.route("/api/verification/submit/<int:verification_id>", methods=["PUT"], endpoint="verification_submit")
    @guards.user_required
    def verification_submit(verification_id: int):
        result = verification.submit(verification_id, user_id=current_principal().id, payload=json_body())
        return ok(message="Verification report submitted successfully", result=result)

    @app.route("/api/verification/dashboard", methods=["GET"], endpoint="verification_dashboard")
    @guards.admin_required
    def verification_dashboard():
        return ok(**verification.dashboard(request.args.get("period") or "today"))

    @app.route("/api/verification/teams", methods=["GET"], endpoint="verification_teams")
    @guards.admin_required
    def verification_teams():
        return ok(**verification.teams())

    @app.route("/api/verification/overdue", methods=["GET"], endpoint="verification_overdue")
    @guards.admin_required
    def verification_overdue():
        return ok(**verification.overdue())

    @app.route("/api/verification/team/<int:team_id>/status", methods=["PUT"], endpoint="verification_team_status")
    @guards.admin_required
    def verification_team_status(team_id: int):
        return ok(**verification.set_team_status(team_id, json_body().get("is_active")))
