from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_principal
from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    performance = container.performance_service

    @app.route("/api/performance/my-performance", methods=["GET"], endpoint="performance_mine")
    @guards.user_required
    def performance_mine():
        args = request.args
        return ok(
            **performance.my_performance(current_principal().id, month=args.get("month"), year=args.get("year"))
        )

    @app.route("/api/performance/admin/all-users", methods=["GET"], endpoint="performance_admin_all_users")
    @guards.admin_required
    def performance_admin_all_users():
        return ok(**performance.admin_all_users(request.args, admin_id=current_principal().id))

    @app.route("/api/performance/admin/user/<int:user_id>", methods=["GET"], endpoint="performance_admin_user")
    @guards.admin_required
    def performance_admin_user(user_id: int):
        args = request.args
        return ok(
            **performance.admin_user(
                user_id, month=args.get("month"), year=args.get("year"), admin_id=current_principal().id
            )
        )

    @app.route("/api/performance/departments", methods=["GET"], endpoint="performance_departments")
    @guards.admin_required
    def performance_departments():
        return ok(**performance.departments(month=request.args.get("month"), year=request.args.get("year")))

    @app.route("/api/performance/admin/recalculate", methods=["POST"], endpoint="performance_recalculate")
    @guards.admin_required
    def performance_recalculate():
        return ok(**performance.recalculate(json_body(), admin_id=current_principal().id))

    @app.route("/api/performance/admin/analytics", methods=["GET"], endpoint="performance_analytics")
    @guards.admin_required
    def performance_analytics():
        return ok(**performance.analytics(month=request.args.get("month"), year=request.args.get("year")))

    @app.route("/api/performance/admin/add-achievement", methods=["POST"], endpoint="performance_add_achievement")
    @guards.admin_required
    def performance_add_achievement():
        achievement = performance.add_achievement(json_body(), admin_id=current_principal().id)
        return ok(message="Achievement added successfully", achievement=achievement)

    @app.route(
        "/api/performance/admin/add-improvement-area", methods=["POST"], endpoint="performance_add_improvement_area"
    )
    @guards.admin_required
    def performance_add_improvement_area():
        area = performance.add_improvement_area(json_body(), admin_id=current_principal().id)
        return ok(message="Improvement area added successfully", improvement_area=area)

    @app.route(
        "/api/performance/admin/add-performance-issue", methods=["POST"], endpoint="performance_add_issue"
    )
    @guards.admin_required
    def performance_add_issue():
        issue = performance.add_issue(json_body(), admin_id=current_principal().id)
        return ok(message="Performance issue added successfully", issue=issue)

    @app.route("/api/performance/admin/resolve-issue", methods=["PUT"], endpoint="performance_resolve_issue")
    @guards.admin_required
    def performance_resolve_issue():
        issue = performance.resolve_issue(json_body())
        return ok(message="Performance issue resolved successfully", issue=issue)

    @app.route("/api/performance/admin/create-warning", methods=["POST"], endpoint="performance_create_warning")
    @guards.admin_required
    def performance_create_warning():
        action = performance.create_warning(json_body(), admin_id=current_principal().id)
        return ok(message="Warning created successfully", warning=action)

    @app.route(
        "/api/performance/admin/create-improvement-plan", methods=["POST"], endpoint="performance_create_plan"
    )
    @guards.admin_required
    def performance_create_plan():
        plan = performance.create_improvement_plan(json_body(), admin_id=current_principal().id)
        return ok(message="Improvement plan created successfully", improvement_plan=plan)

    @app.route("/api/performance/admin/add-goal", methods=["POST"], endpoint="performance_add_goal")
    @guards.admin_required
    def performance_add_goal():
        goal = performance.add_goal(json_body(), admin_id=current_principal().id)
        return ok(message="Goal added successfully", goal=goal)

    @app.route(
        "/api/performance/admin/auto-check-warnings", methods=["POST"], endpoint="performance_auto_check_warnings"
    )
    @guards.admin_required
    def performance_auto_check_warnings():
        return ok(**performance.auto_check_warnings(json_body(), admin_id=current_principal().id))

    @app.route(
        "/api/performance/admin/employees-needing-attention",
        methods=["GET"],
        endpoint="performance_needing_attention",
    )
    @guards.admin_required
    def performance_needing_attention():
        return ok(**performance.needing_attention(month=request.args.get("month"), year=request.args.get("year")))

    @app.route("/api/performance/user/my-warnings", methods=["GET"], endpoint="performance_my_warnings")
    @guards.user_required
    def performance_my_warnings():
        args = request.args
        return ok(**performance.my_warnings(current_principal().id, month=args.get("month"), year=args.get("year")))

    @app.route(
        "/api/performance/user/acknowledge-warning", methods=["POST"], endpoint="performance_acknowledge_warning"
    )
    @guards.user_required
    def performance_acknowledge_warning():
        performance.acknowledge_warning(current_principal().id, json_body())
        return ok(message="Warning acknowledged successfully")
