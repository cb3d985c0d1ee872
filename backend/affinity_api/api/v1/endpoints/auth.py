import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from sqlalchemy.orm import Session

from affinity_api.auth import create_access_token, get_current_claims
from affinity_api.config import Settings, get_settings
from affinity_api.database import get_db
from affinity_api.errors import AuthError
from affinity_api.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    ProfileImageResponse,
    RegisterRequest,
    TokenClaims,
    UpdateProfileRequest,
    UserMessageResponse,
    UserPublic,
    UserResponse,
)
from affinity_api.services import accounts, profile
from affinity_api.services.avatar_storage import AvatarStorage, get_avatar_storage
from affinity_api.utils.audit_logger import create_audit_log

log = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: Request,
    body: RegisterRequest,
    settings: Annotated[Settings, Depends(get_settings)],
    db: Session = Depends(get_db)
):
    """Create an account and sign the caller in."""
    user = accounts.create_account(db, body.username, body.email, body.password)
    token = create_access_token(user, settings)
    public = UserPublic.model_validate(user)

    create_audit_log(db, request, action="register", entity_type="user", entity_id=user.id, user=user.username)
    return {"message": "User registered successfully", "token": token, "user": public}


@router.post("/login", response_model=AuthResponse)
async def login(
    request: Request,
    body: LoginRequest,
    settings: Annotated[Settings, Depends(get_settings)],
    db: Session = Depends(get_db)
):
    """Exchange email and password for a bearer token."""
    try:
        user = accounts.authenticate(db, body.email, body.password)
    except AuthError:
        log.info(f"Failed login for {body.email}")
        create_audit_log(db, request, action="login_failed", user=body.email)
        raise

    token = create_access_token(user, settings)
    public = UserPublic.model_validate(user)
    create_audit_log(db, request, action="login_success", entity_type="user", entity_id=user.id, user=user.username)
    return {"message": "Login successful", "token": token, "user": public}


@router.get("/me", response_model=UserResponse)
async def read_me(
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    db: Session = Depends(get_db)
):
    """Current user's public profile."""
    user = accounts.get_user_or_404(db, claims.userId)
    return {"user": user}


@router.put("/update-profile", response_model=UserMessageResponse)
async def update_profile(
    request: Request,
    body: UpdateProfileRequest,
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    db: Session = Depends(get_db)
):
    """Change any of username, email and bio."""
    changes = body.model_dump(exclude_unset=True)
    user = profile.update_profile(db, claims.userId, changes)
    public = UserPublic.model_validate(user)

    create_audit_log(
        db, request,
        action="profile_updated",
        entity_type="user",
        entity_id=user.id,
        user=user.username,
        details={"fields": sorted(changes)}
    )
    return {"message": "Profile updated successfully", "user": public}


@router.post("/upload-profile-image", response_model=ProfileImageResponse)
async def upload_profile_image(
    request: Request,
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    settings: Annotated[Settings, Depends(get_settings)],
    storage: Annotated[AvatarStorage, Depends(get_avatar_storage)],
    profile_image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db)
):
    """Replace the caller's avatar (multipart field `profile_image`)."""
    content = None
    content_type = None
    if profile_image is not None:
        # One byte past the limit is enough to reject oversized files
        content = await profile_image.read(settings.max_avatar_bytes + 1)
        content_type = profile_image.content_type

    stored = profile.upload_avatar(
        db, storage, claims.userId, content, content_type, settings.max_avatar_bytes
    )
    create_audit_log(
        db, request,
        action="avatar_uploaded",
        entity_type="user",
        entity_id=claims.userId,
        user=claims.username,
        details={"profile_image": stored}
    )
    return {"message": "Profile image uploaded successfully", "profile_image": stored}


@router.delete("/delete-profile-image", response_model=MessageResponse)
async def delete_profile_image(
    request: Request,
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    storage: Annotated[AvatarStorage, Depends(get_avatar_storage)],
    db: Session = Depends(get_db)
):
    """Remove the caller's avatar."""
    profile.delete_avatar(db, storage, claims.userId)
    create_audit_log(db, request, action="avatar_deleted", entity_type="user", entity_id=claims.userId, user=claims.username)
    return {"message": "Profile image deleted successfully"}
