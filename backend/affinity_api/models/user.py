"""User model: credentials, profile and admin flag."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, false
from sqlalchemy.sql import func
from affinity_api.database import Base


class User(Base):
    """Portal account. The password hash has no read path through the API."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)

    # Profile
    bio = Column(Text, nullable=True)
    profile_image = Column(String(255), nullable=True)  # filename under uploads/profiles

    is_admin = Column(Boolean, default=False, server_default=false(), nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', is_admin={self.is_admin})>"
