from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from ..config import ACCESS_TOKEN_TTL_MINUTES, JWT_AUDIENCE, JWT_SECRET
from ..errors import MatchServiceError, NotAuthenticated

ALGORITHM = "HS256"


class IdentityMisconfigured(MatchServiceError):
    """JWT secret not configured"""

    status_code = 500
    reason = "jwt_secret_missing"


def create_access_token(user_id: str, email: str | None = None, ttl_minutes: int | None = None) -> str:
    if not JWT_SECRET:
        raise IdentityMisconfigured()
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=ttl_minutes or ACCESS_TOKEN_TTL_MINUTES)
    payload: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if JWT_AUDIENCE:
        payload["aud"] = JWT_AUDIENCE
    return jwt.encode(payload, JWT_SECRET, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    if not JWT_SECRET:
        raise IdentityMisconfigured()
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=JWT_AUDIENCE or None,
            options={"verify_aud": bool(JWT_AUDIENCE)},
        )
    except jwt.ExpiredSignatureError as exc:
        raise NotAuthenticated("Token expired", reason="token_expired") from exc
    except jwt.PyJWTError as exc:
        raise NotAuthenticated("Invalid token", reason="signature_invalid") from exc
    if not isinstance(payload, dict):
        raise NotAuthenticated("Invalid token", reason="signature_invalid")
    return payload
