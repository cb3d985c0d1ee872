"""Audit log model for security-relevant operations."""

from sqlalchemy import Column, Integer, String, DateTime, Index, JSON, Text
from sqlalchemy.sql import func
from affinity_api.database import Base


class AuditLog(Base):
    """Audit trail for authentication, account and database-browser actions."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # Action details
    action = Column(String(100), nullable=False)  # 'login_failed', 'user_deleted', 'db_sql_executed', ...
    entity_type = Column(String(50), nullable=True)  # 'user', 'table'
    entity_id = Column(Integer, nullable=True)

    # User and context
    user = Column(String(255), nullable=True)  # Username (or attempted email) behind the action
    details = Column(JSON, nullable=True)

    # Client
    ip_address = Column(String(45), nullable=True)  # IPv6 fits
    user_agent = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    __table_args__ = (
        Index('idx_audit_logs_action', 'action'),
        Index('idx_audit_logs_user', 'user'),
    )

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity='{self.entity_type}')>"
