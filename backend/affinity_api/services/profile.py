"""Self-service profile changes and avatar lifecycle."""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from affinity_api.errors import ConflictError, ValidationError
from affinity_api.models.user import User
from affinity_api.services.accounts import get_user_or_404
from affinity_api.services.avatar_storage import AvatarStorage, image_extension
from affinity_api.services.validation import FieldErrors, check_bio, check_email, check_username

log = logging.getLogger(__name__)

PROFILE_FIELDS = ("username", "email", "bio")


def update_profile(db: Session, user_id: int, changes: Dict[str, Any]) -> User:
    """Apply any subset of username, email and bio. Absent keys are untouched."""
    changes = {key: value for key, value in changes.items() if key in PROFILE_FIELDS}
    if not changes:
        raise ValidationError("No fields to update")

    errors: FieldErrors = []
    if "username" in changes:
        check_username(changes["username"], errors)
    if "email" in changes:
        check_email(changes["email"], errors)
    if "bio" in changes:
        check_bio(changes["bio"], errors)
    if errors:
        raise ValidationError(errors=errors)

    if "username" in changes:
        changes["username"] = changes["username"].strip()

    user = get_user_or_404(db, user_id)
    for key, value in changes.items():
        setattr(user, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(_taken_message(db, user_id, changes))
    db.refresh(user)
    log.info(f"User {user_id} updated profile fields: {', '.join(sorted(changes))}")
    return user


def _taken_message(db: Session, user_id: int, changes: Dict[str, Any]) -> str:
    if "username" in changes:
        clash = db.query(User.id).filter(User.username == changes["username"], User.id != user_id).first()
        if clash:
            return "Username already taken"
    return "Email already taken"


def upload_avatar(
    db: Session,
    storage: AvatarStorage,
    user_id: int,
    content: Optional[bytes],
    content_type: Optional[str],
    max_bytes: int,
) -> str:
    """Store the new avatar, save the reference, then delete the previous file.

    Not atomic: a failed commit leaves the new file orphaned on disk.
    """
    if content is None:
        raise ValidationError.for_field("profile_image", "No file uploaded")
    if image_extension(content_type) is None:
        raise ValidationError.for_field("profile_image", "Only image files are allowed")
    if len(content) > max_bytes:
        raise ValidationError.for_field(
            "profile_image", f"File too large, maximum size is {max_bytes // (1024 * 1024)} MB"
        )

    user = get_user_or_404(db, user_id)
    filename = storage.save(content, content_type)
    previous = user.profile_image

    user.profile_image = filename
    db.commit()
    storage.delete(previous)
    log.info(f"User {user_id} uploaded avatar {filename}")
    return filename


def delete_avatar(db: Session, storage: AvatarStorage, user_id: int) -> None:
    user = get_user_or_404(db, user_id)
    if not user.profile_image:
        raise ValidationError("No profile image to delete")

    previous = user.profile_image
    user.profile_image = None
    db.commit()
    storage.delete(previous)
    log.info(f"User {user_id} removed avatar")
