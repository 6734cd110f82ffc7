"""
Bearer-token sessions for the REST binding.

Tokens are HS256 JWTs carrying the user id; the role is re-read from the
store on every request so a role change takes effect immediately.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from db.models import User
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)


def create_token(
    user: User,
    secret: str = config.SECRET_KEY,
    ttl_minutes: int = config.TOKEN_TTL_MINUTES,
) -> str:
    payload = {
        "sub": str(user.uid),
        "email": user.email,
        "role": user.role.value,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=ttl_minutes),
    }
    return jwt.encode(payload, secret, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str, secret: str = config.SECRET_KEY) -> Optional[int]:
    """Return the uid in a valid token, None if it is missing, expired or forged."""
    try:
        payload = jwt.decode(token, secret, algorithms=[config.JWT_ALGORITHM])
        return int(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as exc:
        _logger.debug(f"Rejected token: {exc}")
        return None


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
