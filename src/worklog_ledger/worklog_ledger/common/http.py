from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, session

from ..core.enums import Role
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def error_response(code: str, message: str, status: int):
    return jsonify({"success": False, "error": code, "message": message}), status


def ok(data=None, *, message: str | None = None, status: int = 200):
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def json_errors(view):
    """Turn domain errors into their JSON error shape and anything else into a 500."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return error_response(e.code, str(e), e.http_status)
        except Exception:
            logger.exception("Unhandled error in %s", view.__name__)
            return error_response("internal_error", "Internal server error", 500)

    return wrapper


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response("unauthenticated", "Please sign in to continue", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response("unauthenticated", "Please sign in to continue", 401)
        if session.get("role") != Role.ADMIN.value:
            return error_response("forbidden", "Administrator access required", 403)
        if not session.get("organization_id"):
            return error_response("forbidden", "No organization bound to this session", 403)
        return view(*args, **kwargs)

    return wrapper


def session_staff_id() -> int:
    return int(session["user_id"])


def session_organization_id() -> int:
    return int(session["organization_id"])
