from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import current_app, g, jsonify, request

ADMIN_HEADER = "X-Admin-Request"
ADMIN_ACTOR = "admin"


def is_admin_request() -> bool:
    return (request.headers.get(ADMIN_HEADER) or "").strip().lower() == "true"


def require_admin_request(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Gate for /api/admin/* JSON routes. Session login lives in the front-end
    app; these routes only check the admin marker header.
    """

    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if not is_admin_request():
            current_app.logger.warning(
                "Rejected admin API call without %s header (path=%s request_id=%s)",
                ADMIN_HEADER,
                request.path,
                getattr(g, "request_id", None),
            )
            return jsonify({"error": "Unauthorized"}), 401
        return fn(*args, **kwargs)

    return wrapped
