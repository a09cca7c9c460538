from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Callable

from flask import g, jsonify, request

from ..core.enums import Role
from .tokens import Principal, TokenService


def current_principal() -> Principal:
    return g.principal


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    parts = header.split(" ", 1)
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1].strip()
    return ""


@dataclass(frozen=True)
class Guards:
    token_required: Callable
    user_required: Callable
    admin_required: Callable
    super_admin_required: Callable


def build_guards(tokens: TokenService) -> Guards:
    """Route decorators that authenticate the bearer token and stash it on ``g``."""

    def token_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = _bearer_token()
            if not token:
                return jsonify({"success": False, "message": "Access token required"}), 401
            # AuthorizationError propagates to the JSON error handler (403).
            g.principal = tokens.decode(token)
            return view(*args, **kwargs)

        return wrapper

    def user_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if g.principal.user_id is None:
                return jsonify({"success": False, "message": "Staff access required"}), 403
            return view(*args, **kwargs)

        return token_required(wrapper)

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if not g.principal.is_admin:
                return jsonify({"success": False, "message": "Admin access required"}), 403
            return view(*args, **kwargs)

        return token_required(wrapper)

    def super_admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if not g.principal.is_admin or g.principal.role != Role.SUPER_ADMIN:
                return jsonify({"success": False, "message": "Super admin access required"}), 403
            return view(*args, **kwargs)

        return token_required(wrapper)

    return Guards(
        token_required=token_required,
        user_required=user_required,
        admin_required=admin_required,
        super_admin_required=super_admin_required,
    )
