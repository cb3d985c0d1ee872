"""Audit trail helper for security-relevant actions."""

import logging
from typing import Optional, Dict, Any

from fastapi import Request
from sqlalchemy.orm import Session

from affinity_api.models.audit_log import AuditLog
from affinity_api.utils.ip_extractor import get_client_ip, get_user_agent

log = logging.getLogger(__name__)


def create_audit_log(
    db: Session,
    request: Request,
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    user: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Record an audit entry with the caller's IP and user agent, and commit it.

    Args:
        db: Database session
        request: Incoming request (for IP/user-agent extraction)
        action: e.g. 'login_failed', 'user_deleted', 'db_sql_executed'
        entity_type: Kind of entity affected ('user', 'table')
        entity_id: ID of the affected entity
        user: Username behind the action; the attempted email for failed logins
        details: Additional JSON context. Never include passwords or tokens.
    """
    audit_log = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user=user,
        details=details,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request)
    )

    db.add(audit_log)
    db.commit()
    db.refresh(audit_log)
    log.debug(f"Audit: {action} by {user or 'anonymous'}")
    return audit_log
