from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_principal
from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    tasks = container.task_service

    @app.route("/api/tasks/create", methods=["POST"], endpoint="tasks_create")
    @guards.admin_required
    def tasks_create():
        result = tasks.create(json_body(), assigned_by=current_principal().id)
        return ok(201, **result)

    @app.route("/api/tasks/my-tasks", methods=["GET"], endpoint="tasks_my_tasks")
    @guards.user_required
    def tasks_my_tasks():
        return ok(**tasks.my_tasks(current_principal().id, request.args))

    @app.route("/api/tasks/today", methods=["GET"], endpoint="tasks_today")
    @guards.user_required
    def tasks_today():
        return ok(**tasks.today(current_principal().id))

    @app.route("/api/tasks/update-status/<int:task_id>", methods=["PUT"], endpoint="tasks_update_status")
    @guards.token_required
    def tasks_update_status(task_id: int):
        body = json_body()
        principal = current_principal()
        result = tasks.update_status(
            task_id,
            user_id=principal.user_id,
            is_admin=principal.is_admin,
            status=body.get("status"),
            completion_notes=body.get("completion_notes"),
        )
        return ok(message="Task status updated successfully", **result)

    @app.route("/api/tasks/assign-verifier/<int:task_id>", methods=["PUT"], endpoint="tasks_assign_verifier")
    @guards.admin_required
    def tasks_assign_verifier(task_id: int):
        task = tasks.assign_verifier(task_id, json_body().get("verifier_id"))
        return ok(message="Verifier assigned successfully", task=task)

    @app.route("/api/tasks/needs-verification", methods=["GET"], endpoint="tasks_needs_verification")
    @guards.admin_required
    def tasks_needs_verification():
        items = tasks.needs_verification()
        return ok(tasks=items, total=len(items))

    @app.route("/api/tasks/my-verification-tasks", methods=["GET"], endpoint="tasks_my_verification_tasks")
    @guards.user_required
    def tasks_my_verification_tasks():
        return ok(**tasks.my_verification_tasks(current_principal().id, status=request.args.get("status")))

    @app.route(
        "/api/tasks/submit-verification/<int:task_id>", methods=["PUT"], endpoint="tasks_submit_verification"
    )
    @guards.user_required
    def tasks_submit_verification(task_id: int):
        body = json_body()
        verification = tasks.submit_verification(
            task_id,
            user_id=current_principal().id,
            score=body.get("score"),
            result=body.get("result"),
            notes=body.get("notes"),
        )
        return ok(message="Verification submitted successfully", verification=verification)

    @app.route(
        "/api/tasks/verification-status/<int:task_id>", methods=["GET"], endpoint="tasks_verification_status"
    )
    @guards.token_required
    def tasks_verification_status(task_id: int):
        principal = current_principal()
        return ok(**tasks.verification_status(task_id, user_id=principal.user_id, is_admin=principal.is_admin))

    @app.route("/api/tasks/admin/all", methods=["GET"], endpoint="tasks_admin_all")
    @guards.admin_required
    def tasks_admin_all():
        return ok(**tasks.admin_all(request.args))

    @app.route("/api/tasks/admin/dashboard", methods=["GET"], endpoint="tasks_admin_dashboard")
    @guards.admin_required
    def tasks_admin_dashboard():
        return ok(dashboard=tasks.admin_dashboard(request.args.get("period") or "today"))

    @app.route("/api/tasks/check-reassignments", methods=["POST"], endpoint="tasks_check_reassignments")
    @guards.admin_required
    def tasks_check_reassignments():
        return ok(**tasks.check_reassignments(json_body().get("date")))

    @app.route("/api/tasks/manual-reassign/<int:task_id>", methods=["PUT"], endpoint="tasks_manual_reassign")
    @guards.admin_required
    def tasks_manual_reassign(task_id: int):
        body = json_body()
        result = tasks.manual_reassign(task_id, body.get("new_user_id"), body.get("reason"))
        return ok(**result)

    @app.route("/api/tasks/reassignment-stats", methods=["GET"], endpoint="tasks_reassignment_stats")
    @guards.admin_required
    def tasks_reassignment_stats():
        return ok(stats=tasks.reassignment_stats(request.args.get("date")))

    @app.route("/api/tasks/update/<int:task_id>", methods=["PUT"], endpoint="tasks_update")
    @guards.admin_required
    def tasks_update(task_id: int):
        task = tasks.update(task_id, json_body())
        return ok(message="Task updated successfully", task=task)

    @app.route("/api/tasks/delete/<int:task_id>", methods=["DELETE"], endpoint="tasks_delete")
    @guards.admin_required
    def tasks_delete(task_id: int):
        return ok(message="Task deleted successfully", deleted_task=tasks.delete(task_id))
