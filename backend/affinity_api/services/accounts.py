"""Registration, login and account creation."""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from affinity_api.auth import get_dummy_hash, get_password_hash, verify_password
from affinity_api.errors import AuthError, ConflictError, NotFoundError
from affinity_api.models.user import User
from affinity_api.services.validation import PASSWORD_MAX_LENGTH, validate_login, validate_registration

log = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def create_account(
    db: Session,
    username: Optional[str],
    email: Optional[str],
    password: Optional[str],
    is_admin: bool = False,
) -> User:
    """Validate and insert a new user.

    Uniqueness of username and email is left to the store's unique indexes; a
    violation of either surfaces as ConflictError.
    """
    validate_registration(username, email, password)

    user = User(
        username=username.strip(),
        email=email,
        hashed_password=get_password_hash(password),
        is_admin=is_admin,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        log.info(f"Registration rejected, username or email already in use: {email}")
        raise ConflictError("User already exists")
    db.refresh(user)
    log.info(f"Created user {user.id} ({user.username}, admin={user.is_admin})")
    return user


def authenticate(db: Session, email: Optional[str], password: Optional[str]) -> User:
    """Return the user for valid credentials.

    Unknown email, wrong password and an over-long password raise the
    identical AuthError, and every path runs one bcrypt verification.
    """
    validate_login(email, password)

    user = db.query(User).filter(User.email == email).first()
    if user is None or len(password) > PASSWORD_MAX_LENGTH:
        verify_password(password[:PASSWORD_MAX_LENGTH], get_dummy_hash())
        raise AuthError(INVALID_CREDENTIALS)
    if not verify_password(password, user.hashed_password):
        raise AuthError(INVALID_CREDENTIALS)
    return user


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
