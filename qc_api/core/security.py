from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from jose import jwt
from jose.exceptions import JWTError, ExpiredSignatureError
from fastapi import HTTPException, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional
from qc_api.core.config import settings
from qc_api.db.session import get_db
from qc_api.repositories import token_repo

logger = logging.getLogger(__name__)
bearer = HTTPBearer(auto_error=False)

ACCESS = "access"
REFRESH = "refresh"
DEV_TOKEN = "dev"


def _encode(user_id: str, token_type: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + lifetime,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: str) -> str:
    return _encode(user_id, ACCESS, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(user_id: str) -> str:
    return _encode(user_id, REFRESH, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def issue_token_pair(user_id: str) -> Dict[str, Any]:
    return {
        "access_token": create_access_token(user_id),
        "refresh_token": create_refresh_token(user_id),
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


def decode_token(token: str, expected_type: str = ACCESS) -> Dict[str, Any]:
    """
    Verify signature, expiry, issuer, audience and token type.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except ExpiredSignatureError as exc:
        raise HTTPException(status_code=401, detail="Token has expired") from exc
    except JWTError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {str(e)}") from e

    if payload.get("type") != expected_type:
        raise HTTPException(status_code=401, detail=f"Invalid token: expected {expected_type} token")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token missing user ID")
    try:
        uuid.UUID(user_id)
    except ValueError as e:
        raise HTTPException(status_code=401, detail="Invalid token: subject is not a user id") from e
    if not payload.get("jti"):
        raise HTTPException(status_code=401, detail="Invalid token: missing token id")
    return payload


def _expiry(payload: Dict[str, Any]) -> datetime:
    return datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)


def refresh_tokens(db: Session, refresh_token: str) -> Dict[str, Any]:
    """
    Rotate a refresh token: the presented token is revoked and a new pair issued.
    """
    payload = decode_token(refresh_token, expected_type=REFRESH)
    if token_repo.is_revoked(db, payload["jti"]):
        logger.warning("Revoked refresh token presented for user %s", payload["sub"])
        raise HTTPException(status_code=401, detail="Token has been revoked")
    token_repo.revoke(db, payload["jti"], payload["sub"], REFRESH, _expiry(payload))
    return issue_token_pair(payload["sub"])


def revoke_token(db: Session, token: str, token_type: str = ACCESS) -> None:
    payload = decode_token(token, expected_type=token_type)
    token_repo.revoke(db, payload["jti"], payload["sub"], token_type, _expiry(payload))
    logger.info("Revoked %s token %s for user %s", token_type, payload["jti"], payload["sub"])
    purged = token_repo.purge_expired(db)
    if purged:
        logger.info("Purged %s expired revocation entries", purged)


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """
    Resolve the caller from a bearer access token.
    """
    if not creds or creds.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    if settings.APP_ENV == "dev" and creds.credentials == DEV_TOKEN:
        logger.info("Dev bypass token used")
        return {"user_id": settings.DEV_USER_ID, "jti": None}

    payload = decode_token(creds.credentials, expected_type=ACCESS)
    if token_repo.is_revoked(db, payload["jti"]):
        raise HTTPException(status_code=401, detail="Token has been revoked")
    return {"user_id": payload["sub"], "jti": payload["jti"]}
