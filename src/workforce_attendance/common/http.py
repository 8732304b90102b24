from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request, session

from ..core.constants import MAX_DEVICE_LENGTH, MAX_IP_LENGTH
from ..core.exceptions import (
    AlreadyClockedIn,
    DomainError,
    InvalidTransition,
    NoActiveAttendance,
    ShiftNotFound,
    StoreConflict,
    StoreUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    ValidationError: 400,
    NoActiveAttendance: 404,
    AlreadyClockedIn: 409,
    InvalidTransition: 409,
    StoreConflict: 409,
    ShiftNotFound: 422,
    StoreUnavailable: 503,
}


def error_response(exc: DomainError):
    status = next((code for kind, code in STATUS_BY_ERROR.items() if isinstance(exc, kind)), 400)
    return jsonify({"success": False, "error": type(exc).__name__, "message": str(exc)}), status


def server_error(message: str):
    logger.exception(message)
    return jsonify({"success": False, "message": message}), 500


def current_identity() -> tuple[int, int]:
    """(user_id, workspace_id) from the session populated by the login flow."""
    return int(session["user_id"]), int(session["workspace_id"])


def client_origin() -> tuple[str, str | None]:
    """(ip, device) of the caller; the first X-Forwarded-For hop wins over X-Real-IP."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    ip = forwarded.split(",")[0].strip() or request.headers.get("X-Real-IP") or request.remote_addr or "unknown"
    device = request.headers.get("User-Agent") or None
    return ip[:MAX_IP_LENGTH], device[:MAX_DEVICE_LENGTH] if device else None


def _is_int(value) -> bool:
    try:
        int(value)
    except (TypeError, ValueError):
        return False
    return True


def api_login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not _is_int(session.get("user_id")):
            return jsonify({"success": False, "message": "Authentication required"}), 401
        if not session.get("workspace_id") or not _is_int(session["workspace_id"]):
            return jsonify({"success": False, "message": "No workspace selected"}), 401
        return view(*args, **kwargs)

    return wrapper
