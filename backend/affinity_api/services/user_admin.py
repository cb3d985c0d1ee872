"""Admin-only user management."""

import logging
from typing import List

from sqlalchemy.orm import Session

from affinity_api.errors import ValidationError
from affinity_api.models.user import User
from affinity_api.services.accounts import get_user_or_404
from affinity_api.services.avatar_storage import AvatarStorage

log = logging.getLogger(__name__)


def list_users(db: Session) -> List[User]:
    """All users, newest first."""
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def delete_user(db: Session, storage: AvatarStorage, target_id: int, acting_id: int) -> str:
    """Delete another user's account together with their avatar file.

    Returns the deleted username.
    """
    if target_id == acting_id:
        raise ValidationError("Cannot delete your own account")

    user = get_user_or_404(db, target_id)
    username = user.username
    avatar = user.profile_image
    db.delete(user)
    db.commit()
    storage.delete(avatar)
    log.info(f"Admin {acting_id} deleted user {target_id} ({username})")
    return username


def set_admin_status(db: Session, target_id: int, acting_id: int, is_admin: bool) -> User:
    if target_id == acting_id:
        raise ValidationError("Cannot modify your own admin status")

    user = get_user_or_404(db, target_id)
    user.is_admin = is_admin
    db.commit()
    db.refresh(user)
    log.info(f"Admin {acting_id} set is_admin={is_admin} for user {target_id}")
    return user
