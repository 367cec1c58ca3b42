import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import JWT_ALGORITHM, SECRET_KEY
from .database import get_db
from .models import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def create_access_token(subject: str, extra_claims: Optional[dict[str, Any]] = None, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token

    Args:
        subject: External auth id of the account (``sub`` claim)
        extra_claims: Optional claims such as email or name
        expires_delta: Token lifetime (default 12 hours)
    """
    to_encode = dict(extra_claims or {})
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=12))
    to_encode.update({"sub": subject, "exp": expire})
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode an access token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"⚠️ JWT verification failed: {e}")
        return None


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the bearer token, creating it on first sight"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    auth_uid = payload.get("sub")
    if not auth_uid:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(payload.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = db.query(User).filter(User.auth_uid == auth_uid).first()
    if user:
        return user

    user = User(auth_uid=auth_uid, email=payload.get("email"), full_name=payload.get("name"))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Created by a concurrent request
        db.rollback()
        return db.query(User).filter(User.auth_uid == auth_uid).one()
    db.refresh(user)
    logger.info(f"✅ Created user {user.id} for auth uid {auth_uid}")
    return user
