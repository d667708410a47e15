import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings


http_bearer = HTTPBearer(auto_error=False)

ANONYMOUS_USER = "anonymous"


def _create_token(sub: str, ttl_seconds: int, extra: Optional[dict] = None) -> str:
    now = datetime.now(tz=timezone.utc)
    payload = {
        "sub": sub,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
        "jti": str(uuid.uuid4()),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str, roles: Optional[List[str]] = None) -> str:
    """Issue a token the way the identity provider does; used by local tooling and tests."""
    return _create_token(user_id, settings.jwt_ttl_seconds, extra={"roles": roles or []})


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def user_id_from_token(token: str) -> str:
    sub = decode_token(token).get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid subject")
    return str(sub)


def get_current_user_id(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    x_user_id: Optional[str] = Header(default=None),
) -> str:
    """
    Resolve the acting user id.

    The core only consumes a user id string. With AUTH_REQUIRED off the id is
    taken from the X-User-Id header (or "anonymous").
    """
    if creds is not None:
        return user_id_from_token(creds.credentials)
    if not settings.auth_required:
        return x_user_id or ANONYMOUS_USER
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
