from __future__ import annotations

from typing import Any

from flask import jsonify, request

from .serialization import to_json


def json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def ok(status: int = 200, **payload: Any):
    """JSON success envelope."""
    return jsonify({"success": True, **{k: to_json(v) for k, v in payload.items()}}), status
