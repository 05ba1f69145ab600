# utils/jwt_utils.py
import jwt
from datetime import datetime, timedelta, timezone

from flask import current_app


def create_access_token(user_id: int, role: str, ttl_minutes: int = None):
    """
    Create a signed JWT for a logged-in user. Contains:
      - sub (user id as str)
      - role
      - iat, exp
    """
    cfg = current_app.config
    ttl = ttl_minutes if ttl_minutes is not None else cfg["JWT_EXPIRY_MINUTES"]
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl)).timestamp())
    }
    return jwt.encode(payload, cfg["JWT_SECRET"], algorithm=cfg["JWT_ALGO"])


def verify_access_token(token: str):
    """
    Returns decoded payload if valid, else raises jwt exceptions.
    """
    cfg = current_app.config
    return jwt.decode(token, cfg["JWT_SECRET"], algorithms=[cfg["JWT_ALGO"]])
