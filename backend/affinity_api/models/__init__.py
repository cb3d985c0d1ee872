"""Database models."""

from affinity_api.models.user import User
from affinity_api.models.audit_log import AuditLog

__all__ = [
    "User",
    "AuditLog",
]
