from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.orm import Session

from qc_api.db.models import RevokedToken
from qc_api.repositories.base import committing, reading
from qc_api.utils.time import utcnow

def revoke(db: Session, jti: str, user_id: str, token_type: str, expires_at: datetime) -> None:
    with committing(db, "revoke token"):
        if db.get(RevokedToken, jti) is None:
            db.add(RevokedToken(jti=jti, user_id=user_id, token_type=token_type, expires_at=expires_at))

def is_revoked(db: Session, jti: str) -> bool:
    with reading(db, "check token revocation"):
        return db.get(RevokedToken, jti) is not None

def purge_expired(db: Session, now: datetime | None = None) -> int:
    """Drop revocation entries for tokens that have expired anyway."""
    with committing(db, "purge revoked tokens"):
        res = db.execute(delete(RevokedToken).where(RevokedToken.expires_at < (now or utcnow())))
    return res.rowcount or 0
