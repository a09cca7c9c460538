from __future__ import annotations

from flask import Flask

from ..auth.guards import current_principal
from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    auth = container.auth_service

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def auth_register():
        body = json_body()
        result = auth.register(username=body.get("username"), email=body.get("email"), password=body.get("password"))
        return ok(201, message="Registration successful. Check your email for the verification code.", **result)

    @app.route("/api/auth/verify", methods=["POST"], endpoint="auth_verify")
    def auth_verify():
        body = json_body()
        result = auth.verify_email(email=body.get("email"), code=body.get("code"))
        return ok(message="Email verified successfully", **result)

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def auth_login():
        body = json_body()
        result = auth.login(email=body.get("email"), password=body.get("password"))
        return ok(message="Login successful", **result)

    @app.route("/api/auth/resend-verification", methods=["POST"], endpoint="auth_resend_verification")
    def auth_resend_verification():
        result = auth.resend_verification(email=json_body().get("email"))
        return ok(message="Verification code sent", **result)

    @app.route("/api/auth/forgot-password", methods=["POST"], endpoint="auth_forgot_password")
    def auth_forgot_password():
        auth.forgot_password(email=json_body().get("email"))
        return ok(message="If an account with that email exists, a password reset link has been sent")

    @app.route("/api/auth/validate-reset-token", methods=["POST"], endpoint="auth_validate_reset_token")
    def auth_validate_reset_token():
        result = auth.validate_reset_token(token=json_body().get("token"))
        return ok(message="Token is valid", **result)

    @app.route("/api/auth/reset-password", methods=["POST"], endpoint="auth_reset_password")
    def auth_reset_password():
        body = json_body()
        auth.reset_password(token=body.get("token"), password=body.get("password"))
        return ok(message="Password reset successful. You can now log in with your new password")

    @app.route("/api/auth/profile", methods=["GET"], endpoint="auth_profile")
    @guards.user_required
    def auth_profile():
        return ok(**auth.get_profile(user_id=current_principal().id))

    @app.route("/api/auth/profile", methods=["POST"], endpoint="auth_update_profile")
    @guards.user_required
    def auth_update_profile():
        profile = auth.save_profile(user_id=current_principal().id, payload=json_body())
        return ok(message="Profile saved successfully", profile=profile)
