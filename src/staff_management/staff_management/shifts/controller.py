from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_principal
from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    shifts = container.shift_service

    @app.route("/api/shifts/admin/schedules", methods=["POST"], endpoint="shifts_create_schedule")
    @guards.admin_required
    def shifts_create_schedule():
        schedule = shifts.create_schedule(json_body(), assigned_by=current_principal().id)
        return ok(201, message="Schedule created successfully", schedule=schedule)

    @app.route("/api/shifts/my-schedules", methods=["GET"], endpoint="shifts_my_schedules")
    @guards.user_required
    def shifts_my_schedules():
        schedules = shifts.my_schedules(
            current_principal().id, start=request.args.get("start_date"), end=request.args.get("end_date")
        )
        return ok(schedules=schedules, total=len(schedules))

    @app.route("/api/shifts/request-swap", methods=["POST"], endpoint="shifts_request_swap")
    @guards.user_required
    def shifts_request_swap():
        view = shifts.request_swap(current_principal().id, json_body())
        return ok(201, message="Shift swap request submitted successfully", swap_request=view)

    @app.route("/api/shifts/my-requests", methods=["GET"], endpoint="shifts_my_requests")
    @guards.user_required
    def shifts_my_requests():
        return ok(**shifts.my_requests(current_principal().id, status=request.args.get("status")))

    @app.route("/api/shifts/respond/<int:swap_id>", methods=["PUT"], endpoint="shifts_respond")
    @guards.user_required
    def shifts_respond(swap_id: int):
        body = json_body()
        result = shifts.respond(
            swap_id,
            user_id=current_principal().id,
            action=body.get("action"),
            message=body.get("response_message"),
        )
        message = result.pop("message")
        return ok(message=message, swap_request=result)

    @app.route("/api/shifts/admin/pending", methods=["GET"], endpoint="shifts_admin_pending")
    @guards.admin_required
    def shifts_admin_pending():
        return ok(**shifts.admin_pending())

    @app.route("/api/shifts/admin/approve/<int:swap_id>", methods=["PUT"], endpoint="shifts_admin_approve")
    @guards.admin_required
    def shifts_admin_approve(swap_id: int):
        body = json_body()
        result = shifts.admin_approve(
            swap_id,
            admin_id=current_principal().id,
            action=body.get("action"),
            notes=body.get("approval_notes"),
        )
        message = result.pop("message")
        return ok(message=message, swap_request=result)

    @app.route("/api/shifts/cancel/<int:swap_id>", methods=["PUT"], endpoint="shifts_cancel")
    @guards.user_required
    def shifts_cancel(swap_id: int):
        shifts.cancel(swap_id, user_id=current_principal().id)
        return ok(message="Swap request cancelled successfully")

    @app.route(
        "/api/shifts/available-partners/<int:schedule_id>", methods=["GET"], endpoint="shifts_available_partners"
    )
    @guards.user_required
    def shifts_available_partners(schedule_id: int):
        return ok(**shifts.available_partners(schedule_id, user_id=current_principal().id))

    @app.route("/api/shifts/admin/all", methods=["GET"], endpoint="shifts_admin_all")
    @guards.admin_required
    def shifts_admin_all():
        return ok(**shifts.admin_all(request.args))
