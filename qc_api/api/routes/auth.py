import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from qc_api.core.config import settings
from qc_api.core.security import ACCESS, REFRESH, bearer, get_current_user, issue_token_pair, refresh_tokens, revoke_token
from qc_api.db.session import get_db
from qc_api.schemas.auth import DevTokenIn, LogoutIn, RefreshIn, TokenPair

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/token/dev", response_model=TokenPair)
def dev_token(payload: DevTokenIn):
    """Mint a token pair for any user id. 404 outside APP_ENV=dev."""
    if settings.APP_ENV != "dev":
        raise HTTPException(status_code=404, detail="Not Found")
    logger.info("Issuing dev token pair for user %s", payload.user_id)
    return issue_token_pair(str(payload.user_id))

@router.post("/refresh", response_model=TokenPair)
def refresh(payload: RefreshIn, db: Session = Depends(get_db)):
    return refresh_tokens(db, payload.refresh_token)

@router.post("/logout", status_code=204)
def logout(
    payload: LogoutIn | None = None,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # the dev bypass token carries no jti, nothing to revoke
    if user.get("jti"):
        revoke_token(db, creds.credentials, ACCESS)
    if payload is not None and payload.refresh_token:
        revoke_token(db, payload.refresh_token, REFRESH)
