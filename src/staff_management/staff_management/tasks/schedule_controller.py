from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_principal
from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    """Daily work schedule routes; same task store as /api/tasks."""
    guards = container.guards
    tasks = container.task_service

    @app.route("/api/schedule/create", methods=["POST"], endpoint="schedule_create")
    @guards.admin_required
    def schedule_create():
        result = tasks.create(json_body(), assigned_by=current_principal().id, auto_reassign=False)
        return ok(201, message="Task created successfully", task=result["task"])

    @app.route("/api/schedule/bulk-create", methods=["POST"], endpoint="schedule_bulk_create")
    @guards.admin_required
    def schedule_bulk_create():
        result = tasks.bulk_create(json_body().get("tasks"), assigned_by=current_principal().id)
        return ok(201, **result)

    @app.route("/api/schedule/my-tasks", methods=["GET"], endpoint="schedule_my_tasks")
    @guards.user_required
    def schedule_my_tasks():
        args = request.args.to_dict()
        args.setdefault("page", "1")
        return ok(**tasks.my_tasks(current_principal().id, args))

    @app.route("/api/schedule/today", methods=["GET"], endpoint="schedule_today")
    @guards.user_required
    def schedule_today():
        return ok(**tasks.today(current_principal().id))

    @app.route("/api/schedule/upcoming", methods=["GET"], endpoint="schedule_upcoming")
    @guards.user_required
    def schedule_upcoming():
        return ok(**tasks.upcoming(current_principal().id, request.args.get("days")))

    @app.route("/api/schedule/update-status/<int:task_id>", methods=["PUT"], endpoint="schedule_update_status")
    @guards.token_required
    def schedule_update_status(task_id: int):
        body = json_body()
        principal = current_principal()
        result = tasks.update_status(
            task_id,
            user_id=principal.user_id,
            is_admin=principal.is_admin,
            status=body.get("status"),
            completion_notes=body.get("completion_notes"),
        )
        return ok(message="Task status updated successfully", task=result["task"])

    @app.route("/api/schedule/rate/<int:task_id>", methods=["PUT"], endpoint="schedule_rate")
    @guards.admin_required
    def schedule_rate(task_id: int):
        body = json_body()
        task = tasks.rate(
            task_id, rating=body.get("rating"), feedback=body.get("feedback"), rated_by=current_principal().id
        )
        return ok(message="Task rated successfully", task=task)

    @app.route("/api/schedule/admin/all", methods=["GET"], endpoint="schedule_admin_all")
    @guards.admin_required
    def schedule_admin_all():
        return ok(**tasks.admin_all(request.args))

    @app.route("/api/schedule/admin/today-summary", methods=["GET"], endpoint="schedule_admin_today_summary")
    @guards.admin_required
    def schedule_admin_today_summary():
        return ok(**tasks.admin_today_summary())

    @app.route("/api/schedule/admin/analytics", methods=["GET"], endpoint="schedule_admin_analytics")
    @guards.admin_required
    def schedule_admin_analytics():
        return ok(**tasks.admin_analytics(request.args))

    @app.route("/api/schedule/update/<int:task_id>", methods=["PUT"], endpoint="schedule_update")
    @guards.admin_required
    def schedule_update(task_id: int):
        return ok(message="Task updated successfully", task=tasks.update(task_id, json_body()))

    @app.route("/api/schedule/delete/<int:task_id>", methods=["DELETE"], endpoint="schedule_delete")
    @guards.admin_required
    def schedule_delete(task_id: int):
        tasks.delete(task_id)
        return ok(message="Task deleted successfully")

    @app.route(
        "/api/schedule/user-performance/<int:user_id>", methods=["GET"], endpoint="schedule_user_performance"
    )
    @guards.admin_required
    def schedule_user_performance(user_id: int):
        return ok(**tasks.user_performance(user_id, request.args))

    @app.route("/api/schedule/categories", methods=["GET"], endpoint="schedule_categories")
    @guards.token_required
    def schedule_categories():
        return ok(categories=tasks.categories())

    @app.route("/api/schedule/stats", methods=["GET"], endpoint="schedule_stats")
    @guards.user_required
    def schedule_stats():
        return ok(**tasks.stats(current_principal().id, request.args.get("period") or "month"))

    @app.route("/api/schedule/bulk-update-status", methods=["PUT"], endpoint="schedule_bulk_update_status")
    @guards.admin_required
    def schedule_bulk_update_status():
        body = json_body()
        result = tasks.bulk_update_status(body.get("task_ids"), body.get("status"), body.get("completion_notes"))
        return ok(**result)

    @app.route("/api/schedule/<int:task_id>", methods=["GET"], endpoint="schedule_get_task")
    @guards.token_required
    def schedule_get_task(task_id: int):
        principal = current_principal()
        return ok(task=tasks.get_task(task_id, user_id=principal.user_id, is_admin=principal.is_admin))
