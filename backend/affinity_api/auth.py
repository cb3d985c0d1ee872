import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from affinity_api.config import Settings, get_settings
from affinity_api.database import get_db
from affinity_api.errors import AuthError, ForbiddenError
from affinity_api.models.user import User
from affinity_api.schemas.auth import TokenClaims

log = logging.getLogger(__name__)

# Password hashing, fixed cost factor
BCRYPT_ROUNDS = 10
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password):
    return pwd_context.hash(password)

# Compared against when the email is unknown, so both login failures cost the same - lazy loaded
_DUMMY_HASH = None

def get_dummy_hash():
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = get_password_hash("not-a-real-password")
    return _DUMMY_HASH


def create_access_token(user: User, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token carrying the user's identity and admin flag as of now."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.access_token_expire_days))
    to_encode = {
        "userId": user.id,
        "username": user.username,
        "email": user.email,
        "isAdmin": bool(user.is_admin),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> TokenClaims:
    """Verify signature and expiry.

    Every failure raises the same AuthError so callers cannot tell a tampered
    token from an expired or malformed one.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return TokenClaims(**payload)
    except (JWTError, PydanticValidationError, TypeError):
        raise AuthError()


def check_admin(claims: TokenClaims) -> TokenClaims:
    if claims.isAdmin is not True:
        raise ForbiddenError("Admin access required")
    return claims


def get_current_claims(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenClaims:
    if credentials is None or not credentials.credentials:
        raise AuthError()
    return decode_access_token(credentials.credentials, settings)


def require_admin(
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    settings: Annotated[Settings, Depends(get_settings)],
    db: Session = Depends(get_db),
) -> TokenClaims:
    """Admin gate. Claims decide first; the stored flag is also required when
    `admin_recheck_store` is on, so a demotion applies before the token expires."""
    check_admin(claims)
    if settings.admin_recheck_store:
        user = db.get(User, claims.userId)
        if user is None or not user.is_admin:
            log.warning(f"Admin token for user {claims.userId} no longer backed by an admin account")
            raise ForbiddenError("Admin access required")
    return claims
