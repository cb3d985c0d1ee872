from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from affinity_api.auth import require_admin
from affinity_api.database import get_db
from affinity_api.models.audit_log import AuditLog
from affinity_api.schemas.audit import AuditLogInDB
from affinity_api.schemas.auth import (
    AdminCreateUserRequest,
    AdminStatusRequest,
    MessageResponse,
    TokenClaims,
    UserListResponse,
    UserMessageResponse,
    UserPublic,
)
from affinity_api.services import accounts, user_admin
from affinity_api.services.avatar_storage import AvatarStorage, get_avatar_storage
from affinity_api.utils.audit_logger import create_audit_log

router = APIRouter()


@router.get("/users", response_model=UserListResponse)
async def read_users(
    admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Session = Depends(get_db)
):
    """All users, newest first."""
    return {"users": user_admin.list_users(db)}


@router.post("/users", response_model=UserMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: Request,
    body: AdminCreateUserRequest,
    admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Session = Depends(get_db)
):
    """Create a user, optionally as an admin."""
    user = accounts.create_account(db, body.username, body.email, body.password, is_admin=body.is_admin)
    public = UserPublic.model_validate(user)

    create_audit_log(
        db, request,
        action="user_created",
        entity_type="user",
        entity_id=user.id,
        user=admin.username,
        details={"username": user.username, "is_admin": user.is_admin}
    )
    return {"message": "User created successfully", "user": public}


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    request: Request,
    user_id: int,
    admin: Annotated[TokenClaims, Depends(require_admin)],
    storage: Annotated[AvatarStorage, Depends(get_avatar_storage)],
    db: Session = Depends(get_db)
):
    """Delete another user and their avatar."""
    username = user_admin.delete_user(db, storage, user_id, admin.userId)
    create_audit_log(
        db, request,
        action="user_deleted",
        entity_type="user",
        entity_id=user_id,
        user=admin.username,
        details={"username": username}
    )
    return {"message": "User deleted successfully"}


@router.patch("/users/{user_id}/admin-status", response_model=UserMessageResponse)
async def update_admin_status(
    request: Request,
    user_id: int,
    body: AdminStatusRequest,
    admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Session = Depends(get_db)
):
    """Grant or revoke admin rights on another user.

    Tokens already issued to that user keep their old claims until they expire.
    """
    user = user_admin.set_admin_status(db, user_id, admin.userId, body.is_admin)
    public = UserPublic.model_validate(user)

    create_audit_log(
        db, request,
        action="admin_status_changed",
        entity_type="user",
        entity_id=user_id,
        user=admin.username,
        details={"is_admin": body.is_admin}
    )
    return {"message": "User admin status updated successfully", "user": public}


@router.get("/audit-logs", response_model=List[AuditLogInDB])
async def read_audit_logs(
    admin: Annotated[TokenClaims, Depends(require_admin)],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    action: Optional[str] = Query(None, description="Filter by specific action"),
    user: Optional[str] = Query(None, description="Filter by username"),
    db: Session = Depends(get_db)
):
    """Audit trail, newest first."""
    query = db.query(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    if action:
        query = query.filter(AuditLog.action == action)
    if user:
        query = query.filter(AuditLog.user == user)
    return query.offset(skip).limit(limit).all()
