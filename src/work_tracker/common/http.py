from __future__ import annotations

from datetime import date
from functools import wraps
from typing import Any, Optional

from flask import g, jsonify, request, session

from ..core.exceptions import AuthenticationError, ValidationError
from .datetime_utils import parse_iso_date

USER_ID_HEADER = "X-User-Id"


def login_required(view):
    """Resolve the caller's user id (set by the auth collaborator) into `g.user_id`.

    The id comes from the Flask session after login or from the X-User-Id
    header when a gateway authenticates in front of the app.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        user_id = session.get("user_id") or request.headers.get(USER_ID_HEADER, "").strip()
        if not user_id:
            raise AuthenticationError("Authentication required")
        g.user_id = str(user_id)
        return view(*args, **kwargs)

    return wrapper


def ok(data: Any = None, *, message: Optional[str] = None, status: int = 200):
    body: dict = {"success": True, "data": data}
    if message:
        body["message"] = message
    return jsonify(body), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def query_date(name: str) -> Optional[date]:
    value = request.args.get(name, "").strip()
    return parse_iso_date(value) if value else None


def query_int(name: str, default: int) -> int:
    value = request.args.get(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def query_flag(name: str) -> bool:
    return request.args.get(name, "").strip().lower() in {"1", "true", "yes"}


def query_str(name: str) -> Optional[str]:
    value = request.args.get(name, "").strip()
    return value or None
