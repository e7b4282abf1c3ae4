import logging
from flask import current_app
import jwt

from utils.helpers import utcnow

logger = logging.getLogger(__name__)


def get_jwt_token(user_data):
    """Generate JWT token with user payload"""
    if not user_data:
        raise ValueError("User data must be provided to generate JWT token")

    expiration = utcnow() + current_app.config["JWT_EXPIRATION"]
    payload = {"exp": expiration, **user_data}

    return jwt.encode(payload, current_app.config["SECRET_KEY"], algorithm="HS256")


def decode_jwt(token):
    """Decode and validate JWT token. Returns None when it is expired or invalid."""
    try:
        return jwt.decode(token, current_app.config["SECRET_KEY"], algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        logger.info("Token expired")
        return None
    except jwt.InvalidTokenError:
        logger.info("Invalid token provided")
        return None
