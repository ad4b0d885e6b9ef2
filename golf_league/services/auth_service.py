"""
Authentication service for issuing and verifying JWT access tokens.
"""

import os
from datetime import timedelta
from typing import Dict, Optional
from jose import JWTError, jwt
from golf_league.utils.datetime_utils import utcnow
import logging

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def _get_config() -> Dict:
    """Read JWT settings at call time so tests can override them."""
    return {
        "secret_key": os.getenv("JWT_SECRET_KEY", "dev-secret-change-in-production"),
        "expire_minutes": int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7))),
    }


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode (must include "user_id")
        expires_delta: Optional lifetime; defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT string
    """
    cfg = _get_config()
    expire = utcnow() + (expires_delta or timedelta(minutes=cfg["expire_minutes"]))
    to_encode = {**data, "exp": expire}
    return jwt.encode(to_encode, cfg["secret_key"], algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[Dict]:
    """
    Verify a JWT access token.

    Args:
        token: Encoded JWT string

    Returns:
        Decoded payload, or None if the token is invalid or expired
    """
    try:
        return jwt.decode(token, _get_config()["secret_key"], algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug(f"Token verification failed: {e}")
        return None
