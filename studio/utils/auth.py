import hmac
from functools import wraps

from flask import current_app, jsonify, request


def _credentials() -> tuple[str, str]:
    auth = request.authorization
    if auth and auth.username:
        return auth.username, auth.password or ""
    return (
        request.headers.get("X-Admin-Username", ""),
        request.headers.get("X-Admin-Password", ""),
    )


def check_admin(username: str, password: str) -> bool:
    expected_user = current_app.config.get("ADMIN_USERNAME")
    expected_pass = current_app.config.get("ADMIN_PASSWORD")
    if not expected_user or not expected_pass:
        return False
    user_ok = hmac.compare_digest(str(username).encode(), str(expected_user).encode())
    pass_ok = hmac.compare_digest(str(password).encode(), str(expected_pass).encode())
    return user_ok and pass_ok


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not check_admin(*_credentials()):
            return jsonify({"success": False, "error": "Unauthorized"}), 401
        return view(*args, **kwargs)
    return wrapper
