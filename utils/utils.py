from functools import wraps
from flask import request, jsonify, g
from utils.tokens import decode_jwt


def _request_token():
    token = request.cookies.get("access_token")
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _request_token()
        if not token:
            return jsonify({"error": "Unauthorized"}), 401

        decoded = decode_jwt(token)
        if not decoded:
            return jsonify({"error": "Invalid token"}), 401

        g.user = decoded
        return f(*args, **kwargs)

    return decorated_function


def role_required(*roles):
    """login_required plus a role check against the token's role claim."""
    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            if g.user.get("role") not in roles:
                return jsonify({"error": "Forbidden"}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator
