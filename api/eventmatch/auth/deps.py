"""
Caller identity for FastAPI routes.

The identity provider issues bearer JWTs; the ``sub`` claim is the user id
every matching operation is performed for. Admin maintenance routes use a
static ``X-Admin-Token`` header instead.
"""

import logging
import uuid
from typing import Any

from fastapi import Header

from ..config import ADMIN_TOKEN
from ..errors import NotAuthenticated
from .security import decode_access_token

logger = logging.getLogger(__name__)


def _extract_bearer(authorization: str | None) -> str:
    if not authorization:
        raise NotAuthenticated("Missing Authorization header", reason="missing_token")
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise NotAuthenticated("Invalid Authorization header", reason="malformed_token")
    return parts[1].strip()


def _log_auth_failure(reason: str, trace_id: str, token_prefix: str | None = None, subject: str | None = None) -> None:
    log_data = {
        "trace_id": trace_id,
        "reason": reason,
        "token_prefix": token_prefix,
        "token_user_id": subject,
    }
    logger.warning(f"[AUTH_FAILURE] {log_data}")


def get_current_user(authorization: str | None = Header(default=None, alias="Authorization")) -> dict[str, Any]:
    trace_id = str(uuid.uuid4())
    token_prefix = None
    try:
        token = _extract_bearer(authorization)
        token_prefix = token[:8] + "..." if len(token) > 8 else token
        payload = decode_access_token(token)
    except NotAuthenticated as exc:
        _log_auth_failure(exc.reason, trace_id, token_prefix)
        raise

    user_id = str(payload.get("sub") or "").strip()
    try:
        user_id = str(uuid.UUID(user_id))
    except ValueError:
        _log_auth_failure("token_missing_subject", trace_id, token_prefix, user_id or None)
        raise NotAuthenticated("Invalid token", reason="token_missing_subject")

    logger.debug(f"[auth] token valid, sub={user_id}")
    return {"id": user_id, "email": payload.get("email")}


def require_admin_token(x_admin_token: str | None = Header(default=None, alias="X-Admin-Token")) -> None:
    if not ADMIN_TOKEN or not x_admin_token or x_admin_token != ADMIN_TOKEN:
        raise NotAuthenticated("Invalid admin token", reason="invalid_admin_token")
