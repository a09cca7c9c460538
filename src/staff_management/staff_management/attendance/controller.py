from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_principal
from ..common.http import json_body, ok
from ..common.validators import require_id
from ..container import Container
from .model import CheckInContext


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    attendance = container.attendance_service

    @app.route("/api/auth/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @guards.user_required
    def attendance_check_in():
        body = json_body()
        context = CheckInContext(
            location=body.get("location") or "Office",
            ip_address=request.remote_addr,
            device_info=request.headers.get("User-Agent"),
            notes=body.get("notes"),
        )
        result = attendance.check_in(current_principal().id, context=context)
        return ok(**result)

    @app.route("/api/auth/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @guards.user_required
    def attendance_check_out():
        body = json_body()
        record = attendance.check_out(current_principal().id, location=body.get("location"), notes=body.get("notes"))
        minutes = record.working_minutes
        return ok(
            message=f"Checked out successfully at {record.check_out_time.strftime('%H:%M:%S')}",
            attendance={
                "id": record.attendance_id,
                "check_in_time": record.check_in_time,
                "check_out_time": record.check_out_time,
                "working_hours": f"{minutes // 60}h {minutes % 60}m",
                "total_minutes": minutes,
            },
        )

    @app.route("/api/auth/attendance/apply-leave", methods=["POST"], endpoint="attendance_apply_leave")
    @guards.user_required
    def attendance_apply_leave():
        body = json_body()
        record = attendance.apply_leave(
            current_principal().id,
            reason=body.get("reason"),
            leave_date=body.get("date"),
            leave_type=body.get("leave_type"),
        )
        return ok(
            message="Leave application submitted successfully",
            attendance={
                "id": record.attendance_id,
                "date": record.work_date,
                "status": record.status,
                "leave_type": record.leave_type,
                "reason": record.leave_reason,
                "approval_status": "pending",
            },
        )

    @app.route("/api/auth/attendance/today", methods=["GET"], endpoint="attendance_today")
    @guards.user_required
    def attendance_today():
        return ok(**attendance.today(current_principal().id))

    @app.route("/api/auth/attendance/history", methods=["GET"], endpoint="attendance_history")
    @guards.user_required
    def attendance_history():
        result = attendance.history(
            current_principal().id,
            page=request.args.get("page"),
            limit=request.args.get("limit"),
            month=request.args.get("month"),
            year=request.args.get("year"),
        )
        return ok(**result)

    @app.route("/api/auth/attendance/admin/approve-leave", methods=["POST"], endpoint="attendance_approve_leave")
    @guards.admin_required
    def attendance_approve_leave():
        body = json_body()
        result = attendance.decide_leave(
            attendance_id=require_id(body.get("attendance_id"), "attendance_id"),
            is_approved=body.get("is_approved"),
            admin_id=current_principal().id,
            notes=body.get("approval_notes"),
        )
        message = (
            "Leave request approved successfully"
            if result["action"] == "approved"
            else "Leave request rejected and removed from records"
        )
        return ok(message=message, **result)

    @app.route("/api/auth/attendance/admin/pending-leaves", methods=["GET"], endpoint="attendance_pending_leaves")
    @guards.admin_required
    def attendance_pending_leaves():
        return ok(**attendance.pending_leaves())

    @app.route("/api/auth/attendance/admin/today-summary", methods=["GET"], endpoint="attendance_today_summary")
    @guards.admin_required
    def attendance_today_summary():
        summary = attendance.today_summary()
        return ok(date=summary.date, summary=summary)

    @app.route("/api/auth/attendance/admin/auto-mark-absent", methods=["POST"], endpoint="attendance_auto_mark_absent")
    @guards.admin_required
    def attendance_auto_mark_absent():
        result = attendance.auto_mark_absent_all()
        return ok(message=f"Auto-marked {result['count']} staff absent", **result)
