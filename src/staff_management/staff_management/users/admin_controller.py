from __future__ import annotations

from flask import Flask, request

from ..auth.guards import current_principal
from ..common.http import json_body, ok
from ..container import Container
from .model import public_admin


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    admins = container.admin_service
    staff = container.staff_service

    @app.route("/api/admin/login", methods=["POST"], endpoint="admin_login")
    def admin_login():
        body = json_body()
        result = admins.login(email=body.get("email"), password=body.get("password"))
        return ok(message="Admin login successful", **result)

    @app.route("/api/admin/profile", methods=["GET"], endpoint="admin_profile")
    @guards.admin_required
    def admin_profile():
        admin = admins.get_profile(admin_id=current_principal().id)
        return ok(admin=public_admin(admin))

    @app.route("/api/admin/logout", methods=["POST"], endpoint="admin_logout")
    @guards.admin_required
    def admin_logout():
        return ok(message="Logged out successfully")

    @app.route("/api/admin/create", methods=["POST"], endpoint="admin_create")
    @guards.admin_required
    def admin_create():
        body = json_body()
        principal = current_principal()
        admin = admins.create_admin(
            current_role=principal.role,
            current_admin_id=principal.id,
            username=body.get("username"),
            email=body.get("email"),
            password=body.get("password"),
            role=body.get("role"),
            permissions=body.get("permissions"),
        )
        return ok(201, message="Admin created successfully", admin=public_admin(admin))

    @app.route("/api/admin/list", methods=["GET"], endpoint="admin_list")
    @guards.admin_required
    def admin_list():
        items = admins.list_admins(current_role=current_principal().role)
        return ok(admins=[public_admin(a) for a in items])

    @app.route("/api/admin/status/<int:admin_id>", methods=["PATCH"], endpoint="admin_toggle_status")
    @guards.admin_required
    def admin_toggle_status(admin_id: int):
        principal = current_principal()
        admin = admins.toggle_status(current_role=principal.role, current_admin_id=principal.id, admin_id=admin_id)
        state = "activated" if admin.is_active else "deactivated"
        return ok(message=f"Admin {state} successfully", admin=public_admin(admin))

    @app.route("/api/admin/all-staff", methods=["GET"], endpoint="admin_all_staff")
    @guards.admin_required
    def admin_all_staff():
        return ok(**staff.list_staff())

    @app.route("/api/admin/staff/<int:user_id>", methods=["GET"], endpoint="admin_get_staff")
    @guards.admin_required
    def admin_get_staff(user_id: int):
        return ok(staff=staff.get_staff(user_id=user_id))

    @app.route("/api/admin/staff/<int:user_id>", methods=["PUT"], endpoint="admin_update_staff")
    @guards.admin_required
    def admin_update_staff(user_id: int):
        profile = staff.update_staff(user_id=user_id, payload=json_body())
        return ok(message="Staff information updated successfully", staff=profile)

    @app.route("/api/admin/staff/<int:user_id>", methods=["DELETE"], endpoint="admin_delete_staff")
    @guards.admin_required
    def admin_delete_staff(user_id: int):
        deleted = staff.delete_staff(user_id=user_id)
        return ok(message="Staff member deleted successfully", deleted_staff=deleted)

    @app.route("/api/admin/staff-stats", methods=["GET"], endpoint="admin_staff_stats")
    @guards.admin_required
    def admin_staff_stats():
        return ok(stats=staff.staff_stats())

    @app.route("/api/admin/search-staff", methods=["GET"], endpoint="admin_search_staff")
    @guards.admin_required
    def admin_search_staff():
        results = staff.search_staff(
            query=request.args.get("query"),
            department=request.args.get("department"),
            shift=request.args.get("shift"),
        )
        return ok(staff=results, total=len(results))
