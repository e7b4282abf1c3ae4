import logging
from flask import Blueprint, request, jsonify, make_response, g, current_app
from sqlalchemy import select
from models.users import User
from models import db
from utils.tokens import get_jwt_token
from utils.utils import login_required

auth_bp = Blueprint('auth_bp', __name__)
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _set_token_cookie(response, token, max_age):
    response.set_cookie(
        "access_token", token,
        httponly=True,
        secure=current_app.config["SESSION_COOKIE_SECURE"],
        samesite=current_app.config["SESSION_COOKIE_SAMESITE"],
        path="/",
        max_age=max_age
    )


# Login
@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")

    if not username or not password:
        return jsonify({"error": "Username and password are required"}), 400

    user = db.session.scalar(select(User).filter_by(username=username))

    if not user or not user.check_password(password):
        return jsonify({"error": "Invalid credentials"}), 401
    if user.archived:
        return jsonify({"error": "This account has been archived"}), 403

    token = get_jwt_token({
        "user_id": user.id,
        "username": user.username,
        "role": user.role,
    })

    response = make_response(jsonify({
        "message": "Login successful",
        "token": token,
        "user": {
            "id": user.id,
            "role": user.role,
            "username": user.username,
            "force_password_change": user.force_password_change,
        }
    }))
    _set_token_cookie(response, token, int(current_app.config["JWT_EXPIRATION"].total_seconds()))
    logger.info("User %s logged in as %s", user.id, user.role)
    return response

# Logout
@auth_bp.route('/logout', methods=['POST'])
def logout():
    response = make_response(jsonify({"message": "Logout successful"}))
    _set_token_cookie(response, "", 0)
    return response

# Auth Check
@auth_bp.route('/check-auth', methods=['GET'])
@login_required
def check_auth():
    return jsonify({
        "message": "Authenticated",
        "user": {
            "id": g.user.get("user_id"),
            "role": g.user.get("role"),
            "username": g.user.get("username"),
        }
    }), 200

# Change password
@auth_bp.route('/change-password', methods=['POST'])
@login_required
def change_password():
    data = request.get_json(silent=True) or {}
    current_password = data.get("current_password")
    new_password = data.get("new_password") or ""

    user = db.session.get(User, g.user.get("user_id"))
    if not user:
        return jsonify({"error": "User not found"}), 404
    if not user.check_password(current_password or ""):
        return jsonify({"error": "Current password is incorrect"}), 401
    if len(new_password) < MIN_PASSWORD_LENGTH:
        return jsonify({"error": f"New password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400

    user.set_password(new_password)
    user.force_password_change = False
    db.session.commit()

    return jsonify({"message": "Password changed successfully"}), 200
