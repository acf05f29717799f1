"""Session token helpers (JWT) for bearer-token identity."""

from datetime import datetime, timedelta, timezone

import jwt

from app.core.config import settings


# =============================================================================
# Session Token (JWT bearer)
# =============================================================================

def create_session_token(pubkey: str, expires_hours: int | None = None) -> str:
    """
    Create signed session JWT.
    
    Always signs with current secret (JWT_SECRET).
    The subject is the caller's pubkey.
    """
    hours = expires_hours if expires_hours is not None else settings.JWT_EXPIRES_HOURS
    now = datetime.now(timezone.utc)
    payload = {
        "sub": pubkey,
        "iat": now,
        "exp": now + timedelta(hours=hours),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.
    
    Tries current secret first, then previous (for rotation support).
    
    Raises:
        jwt.ExpiredSignatureError: If the token is past its exp claim
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.ExpiredSignatureError:
            raise
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore
