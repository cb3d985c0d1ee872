from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, StrictBool, StrictInt

# Request bodies keep fields loose so that services can report every
# violated field at once.

class RegisterRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class UpdateProfileRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None

class AdminCreateUserRequest(RegisterRequest):
    is_admin: StrictBool = False

class AdminStatusRequest(BaseModel):
    is_admin: StrictBool


class TokenClaims(BaseModel):
    """Claims carried by a bearer token."""
    userId: StrictInt
    username: str
    email: str
    isAdmin: StrictBool = False


class UserPublic(BaseModel):
    id: int
    username: str
    email: str
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    is_admin: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserPublic

class UserResponse(BaseModel):
    user: UserPublic

class UserMessageResponse(UserResponse):
    message: str

class UserListResponse(BaseModel):
    users: List[UserPublic]

class MessageResponse(BaseModel):
    message: str

class ProfileImageResponse(BaseModel):
    message: str
    profile_image: str
